"""Predictor adapter around any callable that returns logits.

Lets an arbitrary inference backend (ONNX session, remote endpoint, a
hand-written model) act as a predictor: the callable maps a context to raw
logits and this class handles shape handling, softmax and the context
length contract.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np

from tokenrank.exceptions import ConfigValidationError, InferenceError
from tokenrank.predictor.base import Predictor
from tokenrank.predictor.registry import register_predictor
from tokenrank.ranking.engine import softmax

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from tokenrank.config import TokenRankConfig


@register_predictor("logits")
class LogitsPredictor(Predictor):
    """Wrap ``logits_fn(context) -> logits`` as a predictor.

    Accepted logit shapes:
        ``(vocab,)``: logits for the next token.
        ``(batch, vocab)``: last row is used.
        ``(batch, seq, vocab)``: last position of the first batch row is used.

    Args:
        logits_fn: Callable producing logits for a context.
        vocab_size: Expected vocabulary size. Logits of any other length
            raise InferenceError.
        max_sequence_length: Longest context accepted.
    """

    def __init__(
        self,
        logits_fn: Callable[[Sequence[int]], Any],
        vocab_size: int,
        max_sequence_length: int = 8192,
    ) -> None:
        self._logits_fn = logits_fn
        self._vocab_size = vocab_size
        self._max_sequence_length = max_sequence_length

    @classmethod
    def from_config(cls, config: TokenRankConfig, **kwargs: Any) -> LogitsPredictor:
        if kwargs.get("logits_fn") is None or kwargs.get("vocab_size") is None:
            raise ConfigValidationError(
                "The 'logits' predictor requires logits_fn and vocab_size arguments"
            )
        kwargs.setdefault("max_sequence_length", config.max_sequence_length)
        return cls(**kwargs)

    @property
    def name(self) -> str:
        """Return ``'logits'``."""
        return "logits"

    @property
    def vocab_size(self) -> int:
        return self._vocab_size

    def predict(self, context: Sequence[int]) -> np.ndarray:
        """Run ``logits_fn`` on *context* and convert the result to probabilities.

        Raises:
            InferenceError: If the context is empty or too long, the callable
                raises, or the logits have an unexpected shape.
        """
        if len(context) == 0:
            raise InferenceError("Input sequence cannot be empty")
        if len(context) > self._max_sequence_length:
            raise InferenceError(
                f"Input sequence too long: {len(context)} tokens, "
                f"maximum is {self._max_sequence_length}"
            )

        try:
            raw = self._logits_fn(list(context))
        except InferenceError:
            raise
        except Exception as exc:
            raise InferenceError(f"Inference failed: {exc}") from exc

        return softmax(self._last_position(np.asarray(raw, dtype=np.float64)))

    def _last_position(self, logits: np.ndarray) -> np.ndarray:
        if logits.ndim == 3:
            row = logits[0, -1]
        elif logits.ndim == 2:
            row = logits[-1]
        elif logits.ndim == 1:
            row = logits
        else:
            raise InferenceError(f"Unexpected logits shape: {logits.shape}")

        if row.shape[0] != self._vocab_size:
            raise InferenceError(
                f"Logits have {row.shape[0]} entries, expected vocab_size {self._vocab_size}"
            )
        return row
