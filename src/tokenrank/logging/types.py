"""Data types for the diagnostic logging subsystem."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TokenAnalysisRecord:
    """Immutable record of one analyzed position.

    Attributes:
        timestamp_ns: Monotonic time the position started (nanoseconds).
        inference_ms: Time spent in the predictor (0.0 for initial tokens).
        total_ms: Time for the whole position including ranking.
        predictor: Name of the predictor that was called.
        position: Index in the analyzed sequence.
        token_id: Vocabulary index of the actual token.
        token_text: Decoded display text.
        is_initial: True for unpredicted prefix tokens.
        failed: True if the predictor raised for this position.
        error: Error text when ``failed`` is True, else empty.
        rank: Rank of the actual token, None if not predicted.
        probability: Probability of the actual token, None if not predicted.
        cumulative_probability: Mass ranked ahead, None if not predicted.
        config_hash: 16-char SHA-256 prefix of the active config.
    """

    # Timing
    timestamp_ns: int
    inference_ms: float
    total_ms: float

    # Source
    predictor: str

    # Token
    position: int
    token_id: int
    token_text: str
    is_initial: bool

    # Outcome
    failed: bool
    error: str
    rank: int | None
    probability: float | None
    cumulative_probability: float | None

    # Config snapshot
    config_hash: str
