"""tokenrank: how surprising is each token of a text to a language model?

For every token past a short prefix, tokenrank asks a next-token predictor
for its distribution given the preceding tokens and records where the real
token ranks, the probability it was given, and the probability mass of the
tokens the model preferred. Results aggregate into top-k accuracy and
rank/cumulative-probability statistics.
"""

from __future__ import annotations

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("tokenrank")
except PackageNotFoundError:
    __version__ = "0.0.0"

from tokenrank.analysis import (
    AnalysisProgress,
    AnalysisResult,
    CancellationToken,
    RunState,
    SequenceAnalyzer,
)
from tokenrank.config import TokenRankConfig, resolve_config
from tokenrank.exceptions import (
    AnalysisCancelledError,
    CodecError,
    ConcurrentAnalysisError,
    ConfigValidationError,
    EmptyInputError,
    InferenceError,
    InvalidTokenIdError,
    TokenRankError,
)
from tokenrank.statistics import AnalysisStatistics, aggregate

__all__ = [
    "AnalysisCancelledError",
    "AnalysisProgress",
    "AnalysisResult",
    "AnalysisStatistics",
    "CancellationToken",
    "CodecError",
    "ConcurrentAnalysisError",
    "ConfigValidationError",
    "EmptyInputError",
    "InferenceError",
    "InvalidTokenIdError",
    "RunState",
    "SequenceAnalyzer",
    "TokenRankConfig",
    "TokenRankError",
    "__version__",
    "aggregate",
    "resolve_config",
]
