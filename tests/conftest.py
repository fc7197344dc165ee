"""Shared pytest fixtures for tokenrank tests.

Provides deterministic predictors and codecs and a quiet default config
that are used across multiple test modules.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import pytest

from tokenrank.analysis.analyzer import SequenceAnalyzer
from tokenrank.codec.base import TokenCodec
from tokenrank.config import TokenRankConfig
from tokenrank.exceptions import InferenceError
from tokenrank.predictor.base import Predictor


class IdCodec(TokenCodec):
    """Test double: token id ``n`` decodes to ``'t<n>'``."""

    @property
    def name(self) -> str:
        return "id"

    def encode(self, text: str) -> list[int]:
        return [int(word[1:]) for word in text.split()]

    def decode(self, token_ids: Sequence[int]) -> str:
        return " ".join(f"t{t}" for t in token_ids)

    def _decode_single(self, token_id: int) -> str:
        return f"t{token_id}"


class NextTokenPredictor(Predictor):
    """Test double: the last context token + 1 is always the favourite.

    The favourite gets probability 0.5; the rest is spread so that lower
    ids are more likely, making every rank predictable.

    Args:
        vocab_size: Distribution length.
        fail_at: Context lengths for which ``predict()`` raises.
        error: Exception instance raised at those lengths.
    """

    def __init__(
        self,
        vocab_size: int = 16,
        fail_at: Sequence[int] = (),
        error: Exception | None = None,
    ) -> None:
        self._vocab_size = vocab_size
        self._fail_at = set(fail_at)
        self._error = error if error is not None else InferenceError("backend unavailable")
        self.contexts: list[list[int]] = []

    @property
    def name(self) -> str:
        return "next_token"

    @property
    def vocab_size(self) -> int:
        return self._vocab_size

    def predict(self, context: Sequence[int]) -> np.ndarray:
        self.contexts.append(list(context))
        if len(context) in self._fail_at:
            raise self._error

        favourite = (context[-1] + 1) % self._vocab_size
        weights = np.arange(self._vocab_size, 0, -1, dtype=np.float64)
        weights[favourite] = 0.0
        probs = weights / weights.sum() * 0.5
        probs[favourite] = 0.5
        return probs


@pytest.fixture
def quiet_config() -> TokenRankConfig:
    """Config with defaults, no .env file and no per-token log output."""
    return TokenRankConfig(_env_file=None, log_level="none")  # type: ignore[call-arg]


@pytest.fixture
def codec() -> IdCodec:
    return IdCodec()


@pytest.fixture
def predictor() -> NextTokenPredictor:
    return NextTokenPredictor()


@pytest.fixture
def analyzer(
    predictor: NextTokenPredictor, codec: IdCodec, quiet_config: TokenRankConfig
) -> SequenceAnalyzer:
    return SequenceAnalyzer(predictor, codec, quiet_config)


@pytest.fixture
def peaked_distribution() -> np.ndarray:
    """Distribution of length 4 with a unique maximum at id 1."""
    return np.array([0.1, 0.5, 0.3, 0.1])


@pytest.fixture
def make_predictor() -> type[NextTokenPredictor]:
    """The NextTokenPredictor class, for tests that need custom failures."""
    return NextTokenPredictor
