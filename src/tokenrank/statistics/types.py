"""Data types for the statistics subsystem."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class AnalysisStatistics:
    """Summary of one completed analysis run.

    Accuracy and averages are computed over the predicted set: results
    that are not initial and have a rank. When that set is empty every
    field is zero.

    Attributes:
        total_tokens: Number of results in the run.
        predicted_tokens: Size of the predicted set.
        top1_accuracy: Fraction of predicted tokens with rank < 1.
        top5_accuracy: Fraction of predicted tokens with rank < 5.
        top10_accuracy: Fraction of predicted tokens with rank < 10.
        average_rank: Mean rank.
        median_rank: Median rank.
        average_cumulative_probability: Mean cumulative probability.
        median_cumulative_probability: Median cumulative probability.
    """

    total_tokens: int
    predicted_tokens: int
    top1_accuracy: float
    top5_accuracy: float
    top10_accuracy: float
    average_rank: float
    median_rank: float
    average_cumulative_probability: float
    median_cumulative_probability: float

    @classmethod
    def empty(cls) -> AnalysisStatistics:
        """Return statistics with every field set to zero."""
        return cls(
            total_tokens=0,
            predicted_tokens=0,
            top1_accuracy=0.0,
            top5_accuracy=0.0,
            top10_accuracy=0.0,
            average_rank=0.0,
            median_rank=0.0,
            average_cumulative_probability=0.0,
            median_cumulative_probability=0.0,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class ValueSummary:
    """Descriptive statistics of a list of numbers.

    Attributes:
        mean: Arithmetic mean.
        median: Middle value, or the mean of the two middle values.
        min: Smallest value.
        max: Largest value.
        std: Population standard deviation.
    """

    mean: float
    median: float
    min: float
    max: float
    std: float
