"""Text preprocessing applied before tokenization."""

from __future__ import annotations

import math
import re

_MULTI_SPACE = re.compile(r" +")


def preprocess_text(text: str) -> str:
    """Normalize whitespace without touching line structure.

    CRLF and CR become LF, tabs become spaces, runs of spaces collapse to
    one, and leading/trailing whitespace is stripped.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = text.replace("\t", " ")
    return _MULTI_SPACE.sub(" ", text).strip()


def estimate_token_count(text: str) -> int:
    """Rough token count: one token per four characters."""
    return math.ceil(len(text) / 4)
