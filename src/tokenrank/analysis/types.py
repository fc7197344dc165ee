"""Data types for the analysis subsystem."""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass
from typing import Any


class RunState(enum.Enum):
    """Lifecycle of an analyzer run.

    ``IDLE -> RUNNING -> {COMPLETED, FAILED} -> IDLE``. COMPLETED and FAILED
    are terminal for one run; the analyzer is IDLE again afterwards.
    """

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """Measurement of one token position.

    Attributes:
        position: Index of the token in the analyzed sequence.
        token_id: Vocabulary index of the actual token.
        token_text: Decoded display text of the token.
        is_initial: True for the leading tokens that are never predicted.
        rank: Rank of the token in the predicted distribution (0 = most
            likely), or None for initial tokens and failed predictions.
        probability: Probability the predictor assigned to the token.
        cumulative_probability: Probability mass of all tokens ranked ahead.
    """

    position: int
    token_id: int
    token_text: str
    is_initial: bool
    rank: int | None = None
    probability: float | None = None
    cumulative_probability: float | None = None

    def __post_init__(self) -> None:
        missing = (self.rank is None, self.probability is None, self.cumulative_probability is None)
        if len(set(missing)) != 1:
            raise ValueError(
                "rank, probability and cumulative_probability must be all set or all None "
                f"(position {self.position})"
            )
        if self.is_initial and not missing[0]:
            raise ValueError(f"Initial result at position {self.position} cannot carry a rank")

    @property
    def is_predicted(self) -> bool:
        """True when a prediction was made and succeeded for this position."""
        return not self.is_initial and self.rank is not None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class AnalysisProgress:
    """Progress event delivered to subscribers after each position.

    Attributes:
        current: Number of positions processed so far.
        total: Number of positions in the run.
        percentage: ``current / total * 100``.
        current_token: Decoded text of the position just processed.
        estimated_time_remaining: Seconds left, extrapolated from the mean
            time per processed position. None before any timing exists.
    """

    current: int
    total: int
    percentage: float
    current_token: str
    estimated_time_remaining: float | None = None
