"""Plain-text rendering of an analysis run."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tokenrank.analysis.types import AnalysisResult
    from tokenrank.statistics.types import AnalysisStatistics

_RULE = "=" * 80
_THIN_RULE = "-" * 40


def format_result_row(result: AnalysisResult) -> str:
    """Render one result as a fixed-width table row."""
    rank = f"{result.rank:>4}" if result.rank is not None else "  --"
    prob = f"{result.probability:.4f}" if result.probability is not None else "  --  "
    cumulative = (
        f"{result.cumulative_probability:.4f}"
        if result.cumulative_probability is not None
        else "  --  "
    )
    token = result.token_text.replace("\n", "\\n")
    return (
        f"{result.position:>3} | {token:<15} | {result.token_id:>6} | "
        f"{rank} | {prob} | {cumulative}"
    )


def format_results(results: Sequence[AnalysisResult], statistics: AnalysisStatistics) -> str:
    """Render a token table followed by summary statistics.

    Args:
        results: Results of one run, in position order.
        statistics: Output of ``aggregate(results)``.

    Returns:
        Multi-line report text ending with a newline.
    """
    lines = [
        "TEXT-TO-RANK SEQUENCE ANALYSIS RESULTS",
        _RULE,
        "",
        "TOKEN-BY-TOKEN ANALYSIS:",
        _THIN_RULE,
        "Pos | Token | ID | Rank | Prob | CumProb",
        _THIN_RULE,
    ]
    lines.extend(format_result_row(result) for result in results)
    lines.extend(
        [
            "",
            _RULE,
            "SUMMARY STATISTICS:",
            _RULE,
            f"Total tokens: {statistics.total_tokens}",
            f"Predicted tokens: {statistics.predicted_tokens}",
            f"Top-1 accuracy: {statistics.top1_accuracy * 100:.1f}%",
            f"Top-5 accuracy: {statistics.top5_accuracy * 100:.1f}%",
            f"Top-10 accuracy: {statistics.top10_accuracy * 100:.1f}%",
            f"Average rank: {statistics.average_rank:.2f}",
            f"Median rank: {statistics.median_rank:.2f}",
            f"Average cumulative probability: {statistics.average_cumulative_probability:.4f}",
            f"Median cumulative probability: {statistics.median_cumulative_probability:.4f}",
        ]
    )
    return "\n".join(lines) + "\n"
