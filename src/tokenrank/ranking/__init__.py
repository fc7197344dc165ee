"""Ranking subsystem for tokenrank.

Pure functions computing where a token falls in a next-token distribution:
rank, cumulative probability of the tokens ahead of it, and helpers for
turning logits into probabilities.
"""

from tokenrank.ranking.engine import (
    cumulative_probability,
    rank,
    softmax,
    token_probability,
    top_k_tokens,
)
from tokenrank.ranking.types import TopToken

__all__ = [
    "TopToken",
    "cumulative_probability",
    "rank",
    "softmax",
    "token_probability",
    "top_k_tokens",
]
