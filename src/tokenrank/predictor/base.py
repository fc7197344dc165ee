"""Abstract base class for next-token predictors.

A predictor is an opaque oracle: given the token ids seen so far it returns
a full-vocabulary probability distribution for the next token. The analyzer
never looks inside it. Subclasses implement ``name``, ``vocab_size``,
``predict()`` and may override ``close()``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

    import numpy as np

    from tokenrank.config import TokenRankConfig


class Predictor(ABC):
    """Abstract base for all predictors.

    ``predict()`` is called once per analyzed position, with a context that
    grows by exactly one token between calls. It is never called
    concurrently by the analyzer.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable backend identifier (e.g. ``'transformers'``, ``'mock'``)."""

    @property
    @abstractmethod
    def vocab_size(self) -> int:
        """Length of every distribution returned by ``predict()``."""

    @abstractmethod
    def predict(self, context: Sequence[int]) -> np.ndarray:
        """Return the next-token distribution for *context*.

        Args:
            context: Token ids preceding the position being predicted.

        Returns:
            1-D float array of shape ``(vocab_size,)``, non-negative, summing to ~1.

        Raises:
            InferenceError: If the context is unsupported or the backend fails.
        """

    @classmethod
    def from_config(cls, config: TokenRankConfig, **kwargs: Any) -> Predictor:
        """Build an instance from configuration.

        The default ignores *config* and forwards *kwargs* to the constructor.
        Backends that need model or device settings override this.
        """
        return cls(**kwargs)

    def close(self) -> None:
        """Release resources held by the backend. No-op by default."""

    def info(self) -> dict[str, Any]:
        """Return a status dictionary describing this predictor."""
        return {"predictor": self.name, "vocab_size": self.vocab_size}
