"""Data types for the ranking subsystem."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TopToken:
    """One entry of a distribution's most likely tokens.

    Attributes:
        token_id: Vocabulary index of the token.
        probability: Probability assigned to the token.
        rank: Position in descending probability order (0 = most likely).
    """

    token_id: int
    probability: float
    rank: int
