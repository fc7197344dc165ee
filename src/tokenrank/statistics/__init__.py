"""Statistics subsystem for tokenrank.

Turns a list of per-token results into top-k accuracy and rank and
cumulative-probability averages.
"""

from tokenrank.statistics.aggregator import aggregate, describe, top_k_accuracy
from tokenrank.statistics.types import AnalysisStatistics, ValueSummary

__all__ = [
    "AnalysisStatistics",
    "ValueSummary",
    "aggregate",
    "describe",
    "top_k_accuracy",
]
