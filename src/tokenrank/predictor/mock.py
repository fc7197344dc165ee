"""Deterministic mock predictor for tests and dry runs.

The distribution for a context depends only on the context's token ids,
so repeated runs over the same input produce identical results.
"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING

import numpy as np

from tokenrank.predictor.base import Predictor
from tokenrank.predictor.registry import register_predictor
from tokenrank.ranking.engine import softmax

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


@register_predictor("mock")
class MockPredictor(Predictor):
    """Seeded pseudo-random predictor.

    Each context is hashed (together with *seed*) into an RNG seed; the
    distribution is a softmax over standard-normal logits drawn from it.

    Args:
        vocab_size: Length of every returned distribution.
        seed: Mixed into every context hash.
        favourites: Optional mapping of context length to a token id that
            receives ``favourite_mass`` of the probability, for tests that
            need a known rank-0 token at a position.
        favourite_mass: Probability given to a favourite token.
    """

    DEFAULT_VOCAB_SIZE = 256

    def __init__(
        self,
        vocab_size: int = DEFAULT_VOCAB_SIZE,
        seed: int = 0,
        favourites: Mapping[int, int] | None = None,
        favourite_mass: float = 0.9,
    ) -> None:
        self._vocab_size = vocab_size
        self._seed = seed
        self._favourites = dict(favourites or {})
        self._favourite_mass = favourite_mass
        self.calls: list[tuple[int, ...]] = []

    @property
    def name(self) -> str:
        """Return ``'mock'``."""
        return "mock"

    @property
    def vocab_size(self) -> int:
        return self._vocab_size

    def predict(self, context: Sequence[int]) -> np.ndarray:
        """Return a reproducible distribution for *context*."""
        key = tuple(int(t) for t in context)
        self.calls.append(key)

        digest = hashlib.sha256(repr((self._seed, key)).encode("utf-8")).digest()
        rng = np.random.default_rng(int.from_bytes(digest[:8], "little"))
        probs = softmax(rng.standard_normal(self._vocab_size))

        favourite = self._favourites.get(len(key))
        if favourite is not None:
            probs = probs * (1.0 - self._favourite_mass)
            probs[favourite] += self._favourite_mass
        return probs
