"""Hugging Face causal language model predictor.

Requires ``torch`` from the optional ``hf`` extra. ``torch`` and ``transformers``
are imported when the predictor is built, so importing this module is cheap
and does not need them installed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import numpy as np

from tokenrank.exceptions import InferenceError
from tokenrank.predictor.base import Predictor
from tokenrank.predictor.registry import register_predictor

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tokenrank.config import TokenRankConfig

logger = logging.getLogger("tokenrank")


@register_predictor("transformers")
class TransformersPredictor(Predictor):
    """Next-token distributions from a ``transformers`` causal LM.

    Every call runs a full forward pass over the context without a
    key/value cache, so each distribution depends on the context alone.

    Args:
        model: A loaded causal LM (``AutoModelForCausalLM`` instance).
        device: Torch device string the model lives on.
        max_sequence_length: Longest context accepted.
        name: Identifier reported in logs.
    """

    def __init__(
        self,
        model: Any,
        device: str = "cpu",
        max_sequence_length: int = 8192,
        name: str = "transformers",
    ) -> None:
        import torch

        self._torch = torch
        self._model = model
        self._device = device
        self._max_sequence_length = max_sequence_length
        self._name = name
        self._vocab_size = int(model.config.vocab_size)
        self._model.eval()

    @classmethod
    def from_pretrained(
        cls,
        model_name: str,
        device: str = "cpu",
        max_sequence_length: int = 8192,
    ) -> TransformersPredictor:
        """Load *model_name* with ``AutoModelForCausalLM`` and wrap it.

        Raises:
            InferenceError: If the model cannot be loaded.
        """
        from transformers import AutoModelForCausalLM

        try:
            model = AutoModelForCausalLM.from_pretrained(model_name)
        except (OSError, ValueError) as exc:
            raise InferenceError(f"Failed to load model {model_name!r}: {exc}") from exc
        model.to(device)

        logger.info("Loaded causal LM %s on %s", model_name, device)
        return cls(model, device=device, max_sequence_length=max_sequence_length, name=model_name)

    @classmethod
    def from_config(cls, config: TokenRankConfig, **kwargs: Any) -> TransformersPredictor:
        if "model" in kwargs:
            kwargs.setdefault("device", config.device)
            kwargs.setdefault("max_sequence_length", config.max_sequence_length)
            return cls(**kwargs)
        return cls.from_pretrained(
            config.model_name,
            device=config.device,
            max_sequence_length=config.max_sequence_length,
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def vocab_size(self) -> int:
        return self._vocab_size

    def predict(self, context: Sequence[int]) -> np.ndarray:
        """Run the model on *context* and softmax the last position's logits.

        Raises:
            InferenceError: If the context is empty or too long, or the
                forward pass fails.
        """
        if len(context) == 0:
            raise InferenceError("Input sequence cannot be empty")
        if len(context) > self._max_sequence_length:
            raise InferenceError(
                f"Input sequence too long: {len(context)} tokens, "
                f"maximum is {self._max_sequence_length}"
            )

        torch = self._torch
        input_ids = torch.tensor([list(context)], dtype=torch.long, device=self._device)
        try:
            with torch.no_grad():
                logits = self._model(input_ids=input_ids).logits[0, -1]
        except RuntimeError as exc:
            raise InferenceError(f"Inference failed: {exc}") from exc

        probs = torch.softmax(logits.float(), dim=-1)
        result: np.ndarray = probs.detach().cpu().numpy().astype(np.float64)
        return result

    def close(self) -> None:
        """Drop the model reference so its memory can be reclaimed."""
        self._model = None
