"""Exception hierarchy for tokenrank.

All exceptions derive from TokenRankError, enabling broad catch patterns
at the application boundary while allowing fine-grained handling internally.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tokenrank.analysis.types import AnalysisResult


class TokenRankError(Exception):
    """Base exception for all tokenrank errors."""


class EmptyInputError(TokenRankError):
    """The input has no tokens to analyze.

    Raised before any position is processed, either because the text is
    empty after preprocessing or because encoding produced zero tokens.
    """


class ConcurrentAnalysisError(TokenRankError):
    """An analysis is already running on this analyzer.

    Raised to the caller of the second run only. The run already in flight
    is not affected.
    """


class InferenceError(TokenRankError):
    """The predictor could not produce a distribution for a context.

    Raised when the context exceeds the supported length, is empty, or the
    backend fails. The analyzer recovers from it per position.
    """


class InvalidTokenIdError(TokenRankError, ValueError):
    """A token id lies outside the distribution it is looked up in.

    This is a contract violation between the caller and the ranking
    functions, not a runtime condition to recover from.
    """


class AnalysisCancelledError(TokenRankError):
    """The run was cancelled at a suspension point.

    Attributes:
        results: Results produced before cancellation, in position order.
    """

    def __init__(self, message: str, results: list[AnalysisResult] | None = None) -> None:
        super().__init__(message)
        self.results: list[AnalysisResult] = list(results or [])


class ConfigValidationError(TokenRankError):
    """Configuration override validation failed.

    Raised when per-call overrides contain unknown keys or attempt to
    override fields that are fixed for the lifetime of an analyzer.
    """


class CodecError(TokenRankError):
    """A tokenizer could not be loaded or failed to encode text."""
