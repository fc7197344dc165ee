"""Reduce per-token analysis results to summary statistics.

All functions are pure: they read their arguments and return new values.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from tokenrank.statistics.types import AnalysisStatistics, ValueSummary

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from tokenrank.analysis.types import AnalysisResult

# k values reported in AnalysisStatistics.
TOP_K_VALUES: tuple[int, ...] = (1, 5, 10)


def describe(values: Sequence[float]) -> ValueSummary:
    """Compute mean, median, min, max and population std of *values*.

    Args:
        values: Numbers to summarize. May be empty.

    Returns:
        ValueSummary, all zeros for an empty input.
    """
    if not values:
        return ValueSummary(mean=0.0, median=0.0, min=0.0, max=0.0, std=0.0)

    ordered = sorted(values)
    n = len(ordered)
    mean = math.fsum(ordered) / n
    mid = n // 2
    if n % 2 == 0:
        median = (ordered[mid - 1] + ordered[mid]) / 2
    else:
        median = float(ordered[mid])
    variance = math.fsum((v - mean) ** 2 for v in ordered) / n

    return ValueSummary(
        mean=mean,
        median=median,
        min=float(ordered[0]),
        max=float(ordered[-1]),
        std=math.sqrt(variance),
    )


def top_k_accuracy(ranks: Sequence[int], k: int) -> float:
    """Fraction of *ranks* that are below *k*; 0.0 when *ranks* is empty."""
    if not ranks:
        return 0.0
    return sum(1 for r in ranks if r < k) / len(ranks)


def aggregate(results: Iterable[AnalysisResult]) -> AnalysisStatistics:
    """Summarize a completed result list.

    Initial results and results whose prediction failed (rank is None) are
    excluded from every accuracy, rank and probability figure.

    Args:
        results: Results of one run, in any order.

    Returns:
        AnalysisStatistics. If no result was predicted, every field is 0.
    """
    results = list(results)
    predicted = [r for r in results if not r.is_initial and r.rank is not None]

    if not predicted:
        return AnalysisStatistics.empty()

    ranks: list[int] = [r.rank for r in predicted if r.rank is not None]
    cumulative: list[float] = [
        r.cumulative_probability for r in predicted if r.cumulative_probability is not None
    ]
    rank_summary = describe(ranks)
    cumulative_summary = describe(cumulative)
    top1, top5, top10 = (top_k_accuracy(ranks, k) for k in TOP_K_VALUES)

    return AnalysisStatistics(
        total_tokens=len(results),
        predicted_tokens=len(predicted),
        top1_accuracy=top1,
        top5_accuracy=top5,
        top10_accuracy=top10,
        average_rank=rank_summary.mean,
        median_rank=rank_summary.median,
        average_cumulative_probability=cumulative_summary.mean,
        median_cumulative_probability=cumulative_summary.median,
    )
