"""Codec backed by a Hugging Face tokenizer.

Wraps any tokenizer object exposing ``encode(text)`` and
``decode(ids, skip_special_tokens=...)``. :meth:`HuggingFaceCodec.from_pretrained`
imports ``transformers`` on demand.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from tokenrank.codec.base import TokenCodec
from tokenrank.exceptions import CodecError

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger("tokenrank")


class HuggingFaceCodec(TokenCodec):
    """Adapter from a ``transformers`` tokenizer to :class:`TokenCodec`.

    Args:
        tokenizer: Loaded tokenizer instance.
        name: Identifier reported in logs (usually the model name or path).
    """

    def __init__(self, tokenizer: Any, name: str = "huggingface") -> None:
        self._tokenizer = tokenizer
        self._name = name

    @classmethod
    def from_pretrained(cls, name_or_path: str, local_files_only: bool = False) -> HuggingFaceCodec:
        """Load a tokenizer with ``AutoTokenizer.from_pretrained``.

        Raises:
            CodecError: If the tokenizer cannot be loaded.
        """
        from transformers import AutoTokenizer

        try:
            tokenizer = AutoTokenizer.from_pretrained(
                name_or_path, local_files_only=local_files_only
            )
        except (OSError, ValueError) as exc:
            raise CodecError(f"Failed to load tokenizer {name_or_path!r}: {exc}") from exc
        return cls(tokenizer, name=name_or_path)

    @property
    def name(self) -> str:
        return self._name

    def encode(self, text: str) -> list[int]:
        try:
            ids = self._tokenizer.encode(text)
        except Exception as exc:
            raise CodecError(f"Failed to tokenize text: {exc}") from exc
        return [int(i) for i in ids]

    def decode(self, token_ids: Sequence[int]) -> str:
        try:
            text: str = self._tokenizer.decode(list(token_ids), skip_special_tokens=True)
        except Exception as exc:
            raise CodecError(f"Failed to decode tokens: {exc}") from exc
        return text

    def _decode_single(self, token_id: int) -> str:
        text: str = self._tokenizer.decode([token_id], skip_special_tokens=True)
        return text
