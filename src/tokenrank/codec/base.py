"""Abstract base class for token codecs.

A codec turns text into token ids and back. ``decode_token()`` is used only
for display, so it is implemented here once and never raises: failures in
the subclass hook degrade to an angle-bracketed id.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger("tokenrank")


class TokenCodec(ABC):
    """Abstract base for all codecs.

    Subclasses implement ``name``, ``encode()``, ``decode()`` and
    ``_decode_single()``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable codec identifier."""

    @abstractmethod
    def encode(self, text: str) -> list[int]:
        """Return the token ids of *text*.

        Raises:
            CodecError: If the text cannot be tokenized.
        """

    @abstractmethod
    def decode(self, token_ids: Sequence[int]) -> str:
        """Return the text of *token_ids*.

        Raises:
            CodecError: If the ids cannot be decoded.
        """

    @abstractmethod
    def _decode_single(self, token_id: int) -> str:
        """Return the display text of one token. May raise."""

    def decode_token(self, token_id: int) -> str:
        """Return the display text of *token_id*, or ``'<id>'`` on failure."""
        try:
            return self._decode_single(token_id)
        except Exception:  # Intentional: display text must never fail
            logger.debug("Codec %s could not decode token %d", self.name, token_id, exc_info=True)
            return f"<{token_id}>"
