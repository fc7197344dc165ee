"""Token codec subsystem for tokenrank.

One capability interface (``encode``/``decode``/``decode_token``) with a
model-tokenizer implementation and a word-level fallback, chosen by
:func:`build_codec`.
"""

from tokenrank.codec.base import TokenCodec
from tokenrank.codec.factory import build_codec
from tokenrank.codec.huggingface import HuggingFaceCodec
from tokenrank.codec.whitespace import SPECIAL_TOKENS, WhitespaceCodec

__all__ = [
    "SPECIAL_TOKENS",
    "HuggingFaceCodec",
    "TokenCodec",
    "WhitespaceCodec",
    "build_codec",
]
