"""Tests for SequenceAnalyzer."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any

import numpy as np
import pytest
from pydantic import ValidationError

from tokenrank.analysis.analyzer import SequenceAnalyzer
from tokenrank.analysis.cancellation import CancellationToken
from tokenrank.analysis.types import AnalysisProgress, AnalysisResult, RunState
from tokenrank.codec.base import TokenCodec
from tokenrank.codec.whitespace import WhitespaceCodec
from tokenrank.config import TokenRankConfig
from tokenrank.exceptions import (
    AnalysisCancelledError,
    ConcurrentAnalysisError,
    ConfigValidationError,
    EmptyInputError,
    InvalidTokenIdError,
)
from tokenrank.logging.logger import AnalysisLogger
from tokenrank.predictor.mock import MockPredictor
from tokenrank.statistics.aggregator import aggregate

FIVE_TOKENS = [1, 2, 3, 4, 9]


class TestScan:
    """Tests for the basic token-by-token scan."""

    def test_five_tokens_prefix_three(self, analyzer: SequenceAnalyzer) -> None:
        results = analyzer.analyze(FIVE_TOKENS, {"initial_tokens_count": 3})
        assert len(results) == 5
        assert [r.position for r in results] == [0, 1, 2, 3, 4]
        for result in results[:3]:
            assert result.is_initial
            assert result.rank is None
            assert result.probability is None
            assert result.cumulative_probability is None
        for result in results[3:]:
            assert not result.is_initial

    def test_token_ids_and_text(self, analyzer: SequenceAnalyzer) -> None:
        results = analyzer.analyze(FIVE_TOKENS)
        assert [r.token_id for r in results] == FIVE_TOKENS
        assert [r.token_text for r in results] == ["t1", "t2", "t3", "t4", "t9"]

    def test_predicted_values(self, analyzer: SequenceAnalyzer) -> None:
        results = analyzer.analyze(FIVE_TOKENS)
        # Position 3: context ends in 3, favourite is 4 -> rank 0.
        assert results[3].rank == 0
        assert results[3].probability == pytest.approx(0.5)
        assert results[3].cumulative_probability == 0.0
        # Position 4: favourite is 5; ids 0-4 and 6-8 are also ahead of 9.
        assert results[4].rank == 9
        assert results[4].cumulative_probability == pytest.approx(
            1.0 - results[4].probability - _mass_behind(9, favourite=5)
        )

    def test_contexts_grow_one_token_at_a_time(
        self, analyzer: SequenceAnalyzer, predictor: Any
    ) -> None:
        analyzer.analyze(FIVE_TOKENS)
        assert predictor.contexts == [[1, 2, 3], [1, 2, 3, 4]]

    def test_default_prefix_is_three(self, analyzer: SequenceAnalyzer) -> None:
        results = analyzer.analyze(FIVE_TOKENS)
        assert [r.is_initial for r in results] == [True, True, True, False, False]

    def test_prefix_longer_than_sequence(self, analyzer: SequenceAnalyzer) -> None:
        results = analyzer.analyze([1, 2], {"initial_tokens_count": 3})
        assert len(results) == 2
        assert all(r.is_initial for r in results)

    def test_zero_prefix_predicts_from_empty_context(
        self, make_predictor: type, codec: TokenCodec, quiet_config: TokenRankConfig
    ) -> None:
        """An empty context is the predictor's problem; it fails and is recovered."""
        predictor = make_predictor()
        analyzer = SequenceAnalyzer(predictor, codec, quiet_config)
        results = analyzer.analyze([1, 2], {"initial_tokens_count": 0})
        assert not results[0].is_initial
        assert results[0].rank is None
        assert results[1].rank == 0

    def test_max_length_truncates(self, analyzer: SequenceAnalyzer) -> None:
        results = analyzer.analyze(FIVE_TOKENS, {"max_length": 4})
        assert [r.token_id for r in results] == [1, 2, 3, 4]

    def test_full_config_object(self, analyzer: SequenceAnalyzer) -> None:
        config = TokenRankConfig(_env_file=None, initial_tokens_count=1)  # type: ignore[call-arg]
        results = analyzer.analyze(FIVE_TOKENS, config)
        assert [r.is_initial for r in results] == [True, False, False, False, False]

    def test_bad_override_key(self, analyzer: SequenceAnalyzer) -> None:
        with pytest.raises(ConfigValidationError):
            analyzer.analyze(FIVE_TOKENS, {"model_name": "other"})
        assert analyzer.state is RunState.IDLE

    def test_bad_override_value(self, analyzer: SequenceAnalyzer) -> None:
        with pytest.raises(ValidationError):
            analyzer.analyze(FIVE_TOKENS, {"max_length": 0})

    def test_deterministic(self, codec: TokenCodec, quiet_config: TokenRankConfig) -> None:
        analyzer = SequenceAnalyzer(MockPredictor(vocab_size=32, seed=3), codec, quiet_config)
        ids = [5, 7, 1, 30, 2, 2, 8, 19]
        assert analyzer.analyze(ids) == analyzer.analyze(ids)

    def test_values_in_range(self, codec: TokenCodec, quiet_config: TokenRankConfig) -> None:
        analyzer = SequenceAnalyzer(MockPredictor(vocab_size=32), codec, quiet_config)
        for result in analyzer.analyze([3, 1, 4, 1, 5, 9, 2, 6, 5, 3]):
            if result.is_predicted:
                assert 0 <= result.rank < 32  # type: ignore[operator]
                assert 0.0 <= result.probability <= 1.0  # type: ignore[operator]
                assert 0.0 <= result.cumulative_probability <= 1.0  # type: ignore[operator]

    def test_statistics_of_run(self, analyzer: SequenceAnalyzer) -> None:
        stats = aggregate(analyzer.analyze(FIVE_TOKENS))
        assert stats.total_tokens == 5
        assert stats.predicted_tokens == 2
        assert stats.top1_accuracy == 0.5
        assert stats.top10_accuracy == 1.0
        assert stats.median_rank == pytest.approx(4.5)


def _mass_behind(target: int, favourite: int, vocab_size: int = 16) -> float:
    """Probability mass ranked behind *target* for NextTokenPredictor."""
    weights = np.arange(vocab_size, 0, -1, dtype=np.float64)
    weights[favourite] = 0.0
    probs = weights / weights.sum() * 0.5
    return float(probs[target + 1 :].sum())


class TestInputErrors:
    def test_empty_sequence(self, analyzer: SequenceAnalyzer, predictor: Any) -> None:
        with pytest.raises(EmptyInputError):
            analyzer.analyze([])
        assert predictor.contexts == []
        assert analyzer.last_outcome is RunState.FAILED
        assert analyzer.state is RunState.IDLE

    def test_negative_token_id(self, analyzer: SequenceAnalyzer) -> None:
        with pytest.raises(InvalidTokenIdError):
            analyzer.analyze([1, -2, 3])

    def test_token_outside_vocab_fails_run(self, analyzer: SequenceAnalyzer) -> None:
        with pytest.raises(InvalidTokenIdError):
            analyzer.analyze([1, 2, 3, 99])
        assert analyzer.last_outcome is RunState.FAILED
        assert not analyzer.is_running


class TestPartialFailure:
    """A failing prediction degrades one position, never the run."""

    def test_failure_at_last_position(
        self, make_predictor: type, codec: TokenCodec, quiet_config: TokenRankConfig
    ) -> None:
        predictor = make_predictor(fail_at=[4])
        analyzer = SequenceAnalyzer(predictor, codec, quiet_config)
        results = analyzer.analyze(FIVE_TOKENS)
        assert len(results) == 5
        assert not results[4].is_initial
        assert results[4].rank is None
        assert results[4].probability is None
        assert results[4].cumulative_probability is None
        assert results[3].rank == 0
        assert results[3].probability == pytest.approx(0.5)
        assert analyzer.last_outcome is RunState.COMPLETED

    def test_unexpected_exception_also_recovered(
        self, make_predictor: type, codec: TokenCodec, quiet_config: TokenRankConfig
    ) -> None:
        predictor = make_predictor(fail_at=[3], error=RuntimeError("cuda oom"))
        analyzer = SequenceAnalyzer(predictor, codec, quiet_config)
        results = analyzer.analyze(FIVE_TOKENS)
        assert results[3].rank is None
        assert results[4].rank == 9

    def test_failure_is_logged(
        self,
        make_predictor: type,
        codec: TokenCodec,
        quiet_config: TokenRankConfig,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        predictor = make_predictor(fail_at=[3])
        analyzer = SequenceAnalyzer(predictor, codec, quiet_config)
        with caplog.at_level(logging.WARNING, logger="tokenrank"):
            analyzer.analyze(FIVE_TOKENS)
        assert any("position 3" in r.message for r in caplog.records)

    def test_failures_recorded_in_diagnostics(
        self, make_predictor: type, codec: TokenCodec
    ) -> None:
        config = TokenRankConfig(  # type: ignore[call-arg]
            _env_file=None, log_level="none", diagnostic_mode=True
        )
        analyzer = SequenceAnalyzer(make_predictor(fail_at=[4]), codec, config)
        analyzer.analyze(FIVE_TOKENS)
        records = analyzer.analysis_logger.get_diagnostic_data()
        assert [r.failed for r in records] == [False, False, False, False, True]
        assert records[4].error == "backend unavailable"
        assert analyzer.analysis_logger.get_summary_stats()["failure_rate"] == 0.5


class TestProgress:
    def test_event_after_every_position(self, analyzer: SequenceAnalyzer) -> None:
        events: list[AnalysisProgress] = []
        analyzer.analyze(FIVE_TOKENS, on_progress=events.append)
        assert [e.current for e in events] == [1, 2, 3, 4, 5]
        assert all(e.total == 5 for e in events)
        assert [e.percentage for e in events] == pytest.approx([20, 40, 60, 80, 100])
        assert [e.current_token for e in events] == ["t1", "t2", "t3", "t4", "t9"]
        assert all(e.estimated_time_remaining is not None for e in events)

    def test_raising_subscriber_does_not_abort(self, analyzer: SequenceAnalyzer) -> None:
        def boom(progress: AnalysisProgress) -> None:
            raise ValueError("bad subscriber")

        events: list[AnalysisProgress] = []
        results = analyzer.analyze(FIVE_TOKENS, on_progress=[boom, events.append])
        assert len(results) == 5
        assert len(events) == 5

    def test_subscribers_do_not_leak_between_runs(self, analyzer: SequenceAnalyzer) -> None:
        events: list[AnalysisProgress] = []
        analyzer.analyze(FIVE_TOKENS, on_progress=events.append)
        analyzer.analyze(FIVE_TOKENS)
        assert len(events) == 5


class TestReentrancy:
    def test_second_run_rejected_while_first_pending(self, analyzer: SequenceAnalyzer) -> None:
        expected = analyzer.analyze(FIVE_TOKENS)

        scan = analyzer.iter_analysis(FIVE_TOKENS)
        first = [next(scan)]
        assert analyzer.state is RunState.RUNNING
        with pytest.raises(ConcurrentAnalysisError):
            analyzer.analyze(FIVE_TOKENS)
        first.extend(scan)

        assert first == expected
        assert analyzer.state is RunState.IDLE
        assert analyzer.last_outcome is RunState.COMPLETED

    def test_rejected_during_async_run(self, analyzer: SequenceAnalyzer) -> None:
        inside = threading.Event()
        release = threading.Event()

        def hold_first_position(progress: AnalysisProgress) -> None:
            if progress.current == 1:
                inside.set()
                release.wait(timeout=5)

        async def scenario() -> tuple[list[AnalysisResult], bool]:
            task = asyncio.create_task(
                analyzer.analyze_async(FIVE_TOKENS, on_progress=hold_first_position)
            )
            assert await asyncio.to_thread(inside.wait, 5)
            rejected = False
            try:
                analyzer.analyze(FIVE_TOKENS)
            except ConcurrentAnalysisError:
                rejected = True
            release.set()
            return await task, rejected

        results, rejected = asyncio.run(scenario())
        assert rejected
        assert len(results) == 5

    def test_rejected_from_other_thread(
        self, codec: TokenCodec, quiet_config: TokenRankConfig
    ) -> None:
        started = threading.Event()
        release = threading.Event()

        class _BlockingPredictor(MockPredictor):
            def predict(self, context):  # type: ignore[no-untyped-def]
                started.set()
                release.wait(timeout=5)
                return super().predict(context)

        analyzer = SequenceAnalyzer(_BlockingPredictor(vocab_size=16), codec, quiet_config)
        outcome: dict[str, list[AnalysisResult]] = {}
        worker = threading.Thread(
            target=lambda: outcome.setdefault("r", analyzer.analyze(FIVE_TOKENS))
        )
        worker.start()
        assert started.wait(timeout=5)
        with pytest.raises(ConcurrentAnalysisError):
            analyzer.analyze(FIVE_TOKENS)
        release.set()
        worker.join(timeout=5)
        assert len(outcome["r"]) == 5

    def test_closing_early_releases_run(self, analyzer: SequenceAnalyzer) -> None:
        scan = analyzer.iter_analysis(FIVE_TOKENS)
        next(scan)
        scan.close()
        assert analyzer.state is RunState.IDLE
        assert analyzer.last_outcome is RunState.FAILED
        assert len(analyzer.analyze(FIVE_TOKENS)) == 5


class TestCancellation:
    def test_cancel_mid_run_keeps_results(self, analyzer: SequenceAnalyzer) -> None:
        token = CancellationToken()

        def cancel_after_four(progress: AnalysisProgress) -> None:
            if progress.current == 4:
                token.cancel("enough")

        with pytest.raises(AnalysisCancelledError, match="enough") as info:
            analyzer.analyze(FIVE_TOKENS, on_progress=cancel_after_four, cancel_token=token)

        produced = info.value.results
        assert [r.position for r in produced] == [0, 1, 2, 3]
        assert analyzer.last_outcome is RunState.FAILED
        assert analyzer.state is RunState.IDLE
        assert produced == analyzer.analyze(FIVE_TOKENS)[:4]
        assert analyzer.last_outcome is RunState.COMPLETED

    def test_cancelled_before_start(self, analyzer: SequenceAnalyzer, predictor: Any) -> None:
        token = CancellationToken()
        token.cancel()
        with pytest.raises(AnalysisCancelledError) as info:
            analyzer.analyze(FIVE_TOKENS, cancel_token=token)
        assert info.value.results == []
        assert predictor.contexts == []
        assert analyzer.last_outcome is RunState.FAILED
        assert analyzer.state is RunState.IDLE


class TestAsync:
    def test_matches_sync(self, analyzer: SequenceAnalyzer) -> None:
        expected = analyzer.analyze(FIVE_TOKENS)
        assert asyncio.run(analyzer.analyze_async(FIVE_TOKENS)) == expected

    def test_event_loop_runs_during_prediction(
        self, codec: TokenCodec, quiet_config: TokenRankConfig
    ) -> None:
        """A prediction that waits on the event loop completes instead of timing out."""
        release = threading.Event()
        waited: list[bool] = []

        class _GatedPredictor(MockPredictor):
            def predict(self, context):  # type: ignore[no-untyped-def]
                waited.append(release.wait(timeout=5))
                return super().predict(context)

        analyzer = SequenceAnalyzer(_GatedPredictor(vocab_size=16), codec, quiet_config)

        async def open_gate() -> None:
            await asyncio.sleep(0.01)
            release.set()

        async def scenario() -> list[AnalysisResult]:
            results, _ = await asyncio.gather(analyzer.analyze_async([1, 2, 3, 4]), open_gate())
            return results

        results = asyncio.run(scenario())
        assert waited == [True]
        assert results[3].is_predicted

    def test_task_cancel_waits_for_position_in_flight(
        self, codec: TokenCodec, quiet_config: TokenRankConfig
    ) -> None:
        entered = threading.Event()
        release = threading.Event()

        class _BlockingPredictor(MockPredictor):
            def predict(self, context):  # type: ignore[no-untyped-def]
                entered.set()
                release.wait(timeout=5)
                return super().predict(context)

        predictor = _BlockingPredictor(vocab_size=16)
        analyzer = SequenceAnalyzer(predictor, codec, quiet_config)

        async def scenario() -> None:
            task = asyncio.create_task(analyzer.analyze_async(FIVE_TOKENS))
            assert await asyncio.to_thread(entered.wait, 5)
            task.cancel()
            release.set()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())
        assert predictor.calls == [(1, 2, 3)]
        assert analyzer.state is RunState.IDLE
        assert analyzer.last_outcome is RunState.FAILED


class TestAnalyzeText:
    def test_encodes_then_analyzes(self, analyzer: SequenceAnalyzer) -> None:
        results = analyzer.analyze_text("  t1\tt2   t3 t4 ")
        assert [r.token_id for r in results] == [1, 2, 3, 4]

    def test_blank_text(self, analyzer: SequenceAnalyzer) -> None:
        with pytest.raises(EmptyInputError, match="empty after preprocessing"):
            analyzer.analyze_text(" \t\r\n ")

    def test_whitespace_codec(self, quiet_config: TokenRankConfig) -> None:
        analyzer = SequenceAnalyzer(MockPredictor(vocab_size=64), WhitespaceCodec(), quiet_config)
        results = analyzer.analyze_text("The cat sat on the mat")
        assert [r.token_text for r in results] == ["the", "cat", "sat", "on", "the", "mat"]
        assert results[0].token_id == results[4].token_id


class TestLogging:
    def test_summary_lines(
        self, predictor: Any, codec: TokenCodec, caplog: pytest.LogCaptureFixture
    ) -> None:
        config = TokenRankConfig(_env_file=None, log_level="summary")  # type: ignore[call-arg]
        analyzer = SequenceAnalyzer(predictor, codec, config)
        with caplog.at_level(logging.INFO, logger="tokenrank"):
            analyzer.analyze(FIVE_TOKENS)
        messages = [r.message for r in caplog.records]
        assert any(m.startswith("pos=3 token=4 rank=0") for m in messages)
        assert any("Analysis complete" in m for m in messages)

    def test_injected_logger(self, predictor: Any, codec: TokenCodec) -> None:
        config = TokenRankConfig(  # type: ignore[call-arg]
            _env_file=None, log_level="none", diagnostic_mode=True
        )
        shared = AnalysisLogger(config)
        analyzer = SequenceAnalyzer(predictor, codec, analysis_logger=shared)
        analyzer.analyze(FIVE_TOKENS)
        assert len(shared.get_diagnostic_data()) == 5
