"""Sequence analysis subsystem for tokenrank.

The analyzer, its result and progress types, run-scoped progress
reporting and cooperative cancellation.
"""

from tokenrank.analysis.analyzer import SequenceAnalyzer
from tokenrank.analysis.cancellation import CancellationToken
from tokenrank.analysis.progress import ProgressReporter
from tokenrank.analysis.types import AnalysisProgress, AnalysisResult, RunState

__all__ = [
    "AnalysisProgress",
    "AnalysisResult",
    "CancellationToken",
    "ProgressReporter",
    "RunState",
    "SequenceAnalyzer",
]
