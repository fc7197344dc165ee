"""Rank and cumulative probability of a token within a distribution.

A distribution is a 1-D array of non-negative probabilities indexed by
token id, summing to ~1.0. Nothing here renormalizes it.

Ordering: tokens are sorted by descending probability with a stable sort,
so among equal probabilities the lower token id comes first. This tie-break
is a property of the sort, not a guarantee callers should rely on.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from tokenrank.exceptions import InvalidTokenIdError
from tokenrank.ranking.types import TopToken

if TYPE_CHECKING:
    from numpy.typing import ArrayLike


def _as_distribution(distribution: ArrayLike) -> np.ndarray:
    probs = np.asarray(distribution, dtype=np.float64)
    if probs.ndim != 1:
        raise ValueError(f"Distribution must be 1-D, got shape {probs.shape}")
    return probs


def _check_token_id(probs: np.ndarray, target_id: int) -> int:
    target = int(target_id)
    if target < 0 or target >= len(probs):
        raise InvalidTokenIdError(
            f"Token id {target} is outside the distribution of size {len(probs)}"
        )
    return target


def _descending_order(probs: np.ndarray) -> np.ndarray:
    # Negating keeps argsort ascending; kind="stable" preserves id order on ties.
    return np.argsort(-probs, kind="stable")


def rank(distribution: ArrayLike, target_id: int) -> int:
    """Return the zero-based rank of *target_id* (0 = most likely token).

    Equivalent to the position of *target_id* in the stable descending sort,
    computed in O(n) without sorting: every token with a strictly higher
    probability ranks ahead, and so does every token with an equal
    probability and a lower id.

    Args:
        distribution: 1-D probability array (vocab_size,).
        target_id: Vocabulary index of the actual token.

    Returns:
        Rank in ``[0, vocab_size)``.

    Raises:
        InvalidTokenIdError: If *target_id* is outside the distribution.
    """
    probs = _as_distribution(distribution)
    target = _check_token_id(probs, target_id)
    target_prob = probs[target]

    higher = int(np.count_nonzero(probs > target_prob))
    tied_before = int(np.count_nonzero(probs[:target] == target_prob))
    return higher + tied_before


def cumulative_probability(distribution: ArrayLike, token_rank: int) -> float:
    """Return the probability mass of all tokens ranked ahead of *token_rank*.

    Args:
        distribution: 1-D probability array (vocab_size,).
        token_rank: Rank as returned by :func:`rank`. Values past the end of
            the distribution are clamped.

    Returns:
        Sum of the first *token_rank* probabilities in descending order.
        ``0.0`` for rank 0.

    Raises:
        ValueError: If *token_rank* is negative.
    """
    if token_rank < 0:
        raise ValueError(f"Rank must be non-negative, got {token_rank}")
    if token_rank == 0:
        return 0.0

    probs = _as_distribution(distribution)
    order = _descending_order(probs)
    return float(np.sum(probs[order[:token_rank]]))


def token_probability(distribution: ArrayLike, target_id: int) -> float:
    """Return the probability assigned to *target_id*.

    Raises:
        InvalidTokenIdError: If *target_id* is outside the distribution.
    """
    probs = _as_distribution(distribution)
    return float(probs[_check_token_id(probs, target_id)])


def softmax(logits: ArrayLike) -> np.ndarray:
    """Numerically stable softmax via shift-by-max.

    Args:
        logits: 1-D logit array (may contain -inf for masked tokens).

    Returns:
        Probability array of the same shape, summing to 1.0.
    """
    values = np.asarray(logits, dtype=np.float64)
    finite_mask = np.isfinite(values)
    if not np.any(finite_mask):
        # All masked -- uniform over all tokens (degenerate case).
        n = len(values)
        return np.full(n, 1.0 / n)

    shifted = values - np.max(values[finite_mask])
    # -inf - max is still -inf, exp(-inf) = 0.
    exp_shifted = np.exp(shifted)
    result: np.ndarray = exp_shifted / np.sum(exp_shifted)
    return result


def top_k_tokens(distribution: ArrayLike, k: int = 10) -> list[TopToken]:
    """Return the *k* most likely tokens in descending probability order.

    Args:
        distribution: 1-D probability array (vocab_size,).
        k: Number of tokens to return. Clamped to the vocabulary size.

    Returns:
        List of TopToken, ranked from 0.
    """
    probs = _as_distribution(distribution)
    if k <= 0:
        return []
    order = _descending_order(probs)[:k]
    return [
        TopToken(token_id=int(token_id), probability=float(probs[token_id]), rank=position)
        for position, token_id in enumerate(order)
    ]
