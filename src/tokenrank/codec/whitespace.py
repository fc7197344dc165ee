"""Word-level fallback codec.

Used when no model tokenizer can be loaded. Splits lowercased text on
whitespace and assigns ids in order of first appearance, after a fixed
block of reserved special tokens. Ids are stable for the lifetime of one
codec instance only.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tokenrank.codec.base import TokenCodec

if TYPE_CHECKING:
    from collections.abc import Sequence

# Reserved vocabulary, ids 0..16 in order.
SPECIAL_TOKENS: tuple[str, ...] = (
    "<|endoftext|>",
    "<|im_start|>",
    "<|im_end|>",
    "<repo_name>",
    "<reponame>",
    "<file_sep>",
    "<filename>",
    "<gh_stars>",
    "<issue_start>",
    "<issue_comment>",
    "<issue_closed>",
    "<jupyter_start>",
    "<jupyter_text>",
    "<jupyter_code>",
    "<jupyter_output>",
    "<jupyter_script>",
    "<empty_output>",
)

UNKNOWN_TOKEN = "<unk>"


class WhitespaceCodec(TokenCodec):
    """Grow-as-you-go word vocabulary."""

    def __init__(self) -> None:
        self._vocab: dict[str, int] = {}
        self._reverse: dict[int, str] = {}
        for token in SPECIAL_TOKENS:
            self._add(token)

    @property
    def name(self) -> str:
        """Return ``'whitespace'``."""
        return "whitespace"

    @property
    def vocab_size(self) -> int:
        """Number of ids assigned so far."""
        return len(self._vocab)

    def _add(self, token: str) -> int:
        token_id = self._vocab.get(token)
        if token_id is None:
            token_id = len(self._vocab)
            self._vocab[token] = token_id
            self._reverse[token_id] = token
        return token_id

    def encode(self, text: str) -> list[int]:
        return [self._add(word) for word in text.lower().split()]

    def decode(self, token_ids: Sequence[int]) -> str:
        return " ".join(self._decode_single(token_id) for token_id in token_ids)

    def _decode_single(self, token_id: int) -> str:
        return self._reverse.get(token_id, UNKNOWN_TOKEN)
