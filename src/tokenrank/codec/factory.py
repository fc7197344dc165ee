"""Choose a codec once, at construction time.

Chain: local tokenizer directory -> remote model tokenizer -> word-level
fallback. The first one that loads is returned; later failures never
switch codecs mid-run.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tokenrank.codec.huggingface import HuggingFaceCodec
from tokenrank.codec.whitespace import WhitespaceCodec
from tokenrank.exceptions import CodecError

if TYPE_CHECKING:
    from tokenrank.codec.base import TokenCodec
    from tokenrank.config import TokenRankConfig

logger = logging.getLogger("tokenrank")


def build_codec(config: TokenRankConfig) -> TokenCodec:
    """Build the best available codec for *config*.

    Args:
        config: Supplies ``tokenizer_path`` (tried first, local files only)
            and ``model_name`` (tried second).

    Returns:
        A HuggingFaceCodec if either tokenizer loads, otherwise a
        WhitespaceCodec.
    """
    attempts: list[tuple[str, bool]] = []
    if config.tokenizer_path:
        attempts.append((config.tokenizer_path, True))
    if config.model_name:
        attempts.append((config.model_name, False))

    for name_or_path, local_only in attempts:
        try:
            codec = HuggingFaceCodec.from_pretrained(name_or_path, local_files_only=local_only)
        except CodecError as exc:
            logger.warning("Tokenizer %r unavailable: %s", name_or_path, exc)
            continue
        logger.info("Using tokenizer %s", codec.name)
        return codec

    logger.warning("No model tokenizer could be loaded, using word-level fallback codec")
    return WhitespaceCodec()
