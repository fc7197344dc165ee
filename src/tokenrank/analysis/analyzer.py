"""Token-by-token surprise analysis.

Walks a token sequence left to right. The first few tokens are recorded
without prediction; every later token is ranked within the distribution
the predictor returns for the tokens before it:

    context -> predictor -> distribution -> rank / probability / cumulative

A failed prediction is recorded with empty prediction fields and the scan
moves on. Only one run may be in flight per analyzer.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import TYPE_CHECKING, Any

from tokenrank.analysis.progress import ProgressReporter
from tokenrank.analysis.types import AnalysisResult, RunState
from tokenrank.config import TokenRankConfig, config_hash, resolve_config
from tokenrank.exceptions import (
    AnalysisCancelledError,
    ConcurrentAnalysisError,
    EmptyInputError,
    InferenceError,
    InvalidTokenIdError,
)
from tokenrank.logging.logger import AnalysisLogger
from tokenrank.logging.types import TokenAnalysisRecord
from tokenrank.ranking import engine
from tokenrank.text import preprocess_text

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

    from tokenrank.analysis.cancellation import CancellationToken
    from tokenrank.analysis.progress import ProgressSubscribers
    from tokenrank.codec.base import TokenCodec
    from tokenrank.predictor.base import Predictor

logger = logging.getLogger("tokenrank")


def _elapsed_ms(start_ns: int) -> float:
    return (time.perf_counter_ns() - start_ns) / 1_000_000.0


class SequenceAnalyzer:
    """Rank every token of a sequence against a predictor's distributions.

    Collaborators are injected; the analyzer owns none of them and never
    closes them.

    Args:
        predictor: Source of next-token distributions.
        codec: Used to decode token display text (and to encode text in
            :meth:`analyze_text`).
        config: Default configuration. Per-call overrides are resolved
            against it. Defaults to ``TokenRankConfig()``.
        analysis_logger: Receives one record per position. Built from
            *config* if omitted.
    """

    def __init__(
        self,
        predictor: Predictor,
        codec: TokenCodec,
        config: TokenRankConfig | None = None,
        analysis_logger: AnalysisLogger | None = None,
    ) -> None:
        self._predictor = predictor
        self._codec = codec
        self._config = config if config is not None else TokenRankConfig()
        self._logger = (
            analysis_logger if analysis_logger is not None else AnalysisLogger(self._config)
        )
        self._run_lock = threading.Lock()
        self._last_outcome: RunState | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def config(self) -> TokenRankConfig:
        """Default configuration for runs without overrides."""
        return self._config

    @property
    def analysis_logger(self) -> AnalysisLogger:
        return self._logger

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    @property
    def state(self) -> RunState:
        """``RUNNING`` while a run is in flight, ``IDLE`` otherwise."""
        return RunState.RUNNING if self._run_lock.locked() else RunState.IDLE

    @property
    def last_outcome(self) -> RunState | None:
        """``COMPLETED`` or ``FAILED`` for the previous run, None before any run."""
        return self._last_outcome

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    def analyze(
        self,
        token_ids: Iterable[int],
        config: TokenRankConfig | Mapping[str, Any] | None = None,
        on_progress: ProgressSubscribers = None,
        cancel_token: CancellationToken | None = None,
    ) -> list[AnalysisResult]:
        """Analyze *token_ids* and return one result per position.

        Args:
            token_ids: Token ids to analyze, in order.
            config: A full config, a mapping of per-call overrides
                (``max_length``, ``initial_tokens_count``), or None.
            on_progress: Callable or iterable of callables receiving an
                AnalysisProgress after every position. Scoped to this run.
            cancel_token: Checked before every position.

        Returns:
            Results ordered by position.

        Raises:
            ConcurrentAnalysisError: If a run is already in flight.
            EmptyInputError: If there are no tokens to analyze.
            AnalysisCancelledError: If *cancel_token* was cancelled. Its
                ``results`` hold what was produced before cancellation.
            InvalidTokenIdError: If a token id is negative or outside a
                returned distribution.
        """
        return list(self.iter_analysis(token_ids, config, on_progress, cancel_token))

    async def analyze_async(
        self,
        token_ids: Iterable[int],
        config: TokenRankConfig | Mapping[str, Any] | None = None,
        on_progress: ProgressSubscribers = None,
        cancel_token: CancellationToken | None = None,
    ) -> list[AnalysisResult]:
        """Same as :meth:`analyze`, with each position processed in a worker thread.

        Positions still run one at a time and in order, but the event loop
        stays free during inference. Progress subscribers are called from
        the worker thread. If the awaiting task is cancelled, the position
        in flight finishes before the run is closed and the cancellation
        propagates.
        """
        scan = self.iter_analysis(token_ids, config, on_progress, cancel_token)
        results: list[AnalysisResult] = []
        try:
            while True:
                step = asyncio.ensure_future(asyncio.to_thread(next, scan, None))
                try:
                    result = await asyncio.shield(step)
                except asyncio.CancelledError:
                    await asyncio.gather(step, return_exceptions=True)
                    raise
                if result is None:
                    break
                results.append(result)
        finally:
            scan.close()
        return results

    def analyze_text(
        self,
        text: str,
        config: TokenRankConfig | Mapping[str, Any] | None = None,
        on_progress: ProgressSubscribers = None,
        cancel_token: CancellationToken | None = None,
    ) -> list[AnalysisResult]:
        """Preprocess and encode *text*, then :meth:`analyze` the tokens.

        Raises:
            EmptyInputError: If the text is blank or encodes to no tokens.
            CodecError: If the codec cannot tokenize the text.
        """
        clean = preprocess_text(text)
        if not clean:
            raise EmptyInputError("Text is empty after preprocessing")

        token_ids = self._codec.encode(clean)
        if not token_ids:
            raise EmptyInputError("No tokens generated from text")

        return self.analyze(token_ids, config, on_progress, cancel_token)

    def iter_analysis(
        self,
        token_ids: Iterable[int],
        config: TokenRankConfig | Mapping[str, Any] | None = None,
        on_progress: ProgressSubscribers = None,
        cancel_token: CancellationToken | None = None,
    ) -> Iterator[AnalysisResult]:
        """Yield results one position at a time.

        Each ``yield`` is a suspension point: the caller decides when the
        next position is processed. The run starts on the first ``next()``
        and ends when the generator is exhausted or closed; closing it early
        counts as a failed run.

        Arguments and exceptions are those of :meth:`analyze`.
        """
        if not self._run_lock.acquire(blocking=False):
            raise ConcurrentAnalysisError(
                "Analysis already in progress; wait for it to finish before starting another"
            )

        outcome = RunState.FAILED
        results: list[AnalysisResult] = []
        try:
            run_config = self._resolve_config(config)
            ids = self._prepare(token_ids, run_config)
            total = len(ids)
            prefix = min(run_config.initial_tokens_count, total)
            reporter = ProgressReporter(total, on_progress)
            hash_str = config_hash(run_config)

            logger.info(
                "Analyzing %d tokens: prefix=%d predictor=%s",
                total,
                prefix,
                self._predictor.name,
            )

            for position in range(total):
                if cancel_token is not None:
                    try:
                        cancel_token.raise_if_cancelled()
                    except AnalysisCancelledError as exc:
                        raise AnalysisCancelledError(str(exc), results) from None

                if position < prefix:
                    result = self._initial_result(ids, position, hash_str)
                else:
                    result = self._predicted_result(ids, position, hash_str)

                results.append(result)
                reporter.report(position, result.token_text)
                yield result

            outcome = RunState.COMPLETED
            logger.info(
                "Analysis complete: %d tokens, %d predicted",
                total,
                sum(1 for r in results if r.is_predicted),
            )
        finally:
            if outcome is RunState.FAILED:
                logger.info("Analysis stopped after %d positions", len(results))
            self._last_outcome = outcome
            self._run_lock.release()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_config(
        self, config: TokenRankConfig | Mapping[str, Any] | None
    ) -> TokenRankConfig:
        if config is None:
            return self._config
        if isinstance(config, TokenRankConfig):
            return config
        return resolve_config(self._config, config)

    @staticmethod
    def _prepare(token_ids: Iterable[int], config: TokenRankConfig) -> list[int]:
        ids = [int(t) for t in token_ids]
        if config.max_length is not None:
            ids = ids[: config.max_length]
        if not ids:
            raise EmptyInputError("Cannot analyze an empty token sequence")

        negative = next((t for t in ids if t < 0), None)
        if negative is not None:
            raise InvalidTokenIdError(f"Token ids must be non-negative, got {negative}")
        return ids

    def _initial_result(self, ids: list[int], position: int, hash_str: str) -> AnalysisResult:
        t_start_ns = time.perf_counter_ns()
        token_id = ids[position]
        result = AnalysisResult(
            position=position,
            token_id=token_id,
            token_text=self._codec.decode_token(token_id),
            is_initial=True,
        )
        self._log(result, t_start_ns, 0.0, "", hash_str)
        return result

    def _predicted_result(self, ids: list[int], position: int, hash_str: str) -> AnalysisResult:
        t_start_ns = time.perf_counter_ns()
        token_id = ids[position]
        token_text = self._codec.decode_token(token_id)

        try:
            distribution = self._predictor.predict(ids[:position])
        except Exception as exc:  # Intentional: one failed prediction must not abort the scan
            inference_ms = _elapsed_ms(t_start_ns)
            logger.warning(
                "Prediction failed at position %d (token %d): %s",
                position,
                token_id,
                exc,
                exc_info=not isinstance(exc, InferenceError),
            )
            result = AnalysisResult(
                position=position,
                token_id=token_id,
                token_text=token_text,
                is_initial=False,
            )
            self._log(result, t_start_ns, inference_ms, str(exc) or type(exc).__name__, hash_str)
            return result

        inference_ms = _elapsed_ms(t_start_ns)
        token_rank = engine.rank(distribution, token_id)
        result = AnalysisResult(
            position=position,
            token_id=token_id,
            token_text=token_text,
            is_initial=False,
            rank=token_rank,
            probability=engine.token_probability(distribution, token_id),
            cumulative_probability=engine.cumulative_probability(distribution, token_rank),
        )
        self._log(result, t_start_ns, inference_ms, "", hash_str)
        return result

    def _log(
        self,
        result: AnalysisResult,
        t_start_ns: int,
        inference_ms: float,
        error: str,
        hash_str: str,
    ) -> None:
        self._logger.log_token(
            TokenAnalysisRecord(
                timestamp_ns=t_start_ns,
                inference_ms=inference_ms,
                total_ms=_elapsed_ms(t_start_ns),
                predictor=self._predictor.name,
                position=result.position,
                token_id=result.token_id,
                token_text=result.token_text,
                is_initial=result.is_initial,
                failed=bool(error),
                error=error,
                rank=result.rank,
                probability=result.probability,
                cumulative_probability=result.cumulative_probability,
                config_hash=hash_str,
            )
        )
