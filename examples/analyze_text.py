#!/usr/bin/env python3
"""Rank every token of a text against a causal language model.

Prints a token-by-token table followed by summary statistics.

Usage:
    # Analyze a string with the default model:
    python analyze_text.py "The quick brown fox jumps over the lazy dog"

    # Read the text from a file and stop after 200 tokens:
    python analyze_text.py --file essay.txt --max-length 200

    # Offline dry run with the mock predictor and word-level codec:
    python analyze_text.py --mock "hello world hello world"

Settings not given on the command line come from the environment:
    export TOKENRANK_MODEL_NAME=gpt2
    export TOKENRANK_DEVICE=cuda
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from tokenrank import TokenRankConfig, TokenRankError, aggregate
from tokenrank.analysis import AnalysisProgress, SequenceAnalyzer
from tokenrank.codec import TokenCodec, WhitespaceCodec, build_codec
from tokenrank.predictor import MockPredictor, build_predictor
from tokenrank.report import format_results
from tokenrank.text import estimate_token_count, preprocess_text

logger = logging.getLogger("tokenrank.example")


def _log_progress(progress: AnalysisProgress) -> None:
    eta = progress.estimated_time_remaining
    logger.info(
        "%d/%d (%.0f%%) %r eta=%s",
        progress.current,
        progress.total,
        progress.percentage,
        progress.current_token,
        "-" if eta is None else f"{eta:.1f}s",
    )


def run(text: str, config: TokenRankConfig, mock: bool) -> str:
    """Analyze *text* and return the rendered report.

    With *mock*, the word-level codec and the mock predictor stand in for
    the model. The codec assigns a new id to every new word, so the mock
    vocabulary is sized after encoding to cover all of them.
    """
    codec: TokenCodec
    if mock:
        codec = WhitespaceCodec()
        codec.encode(preprocess_text(text))
        vocab_size = max(codec.vocab_size, MockPredictor.DEFAULT_VOCAB_SIZE)
        predictor = build_predictor(config, vocab_size=vocab_size)
    else:
        codec = build_codec(config)
        predictor = build_predictor(config)

    logger.info("About %d tokens to analyze", estimate_token_count(text))
    try:
        analyzer = SequenceAnalyzer(predictor, codec, config)
        results = analyzer.analyze_text(text, on_progress=_log_progress)
    finally:
        predictor.close()
    return format_results(results, aggregate(results))


def main() -> None:
    """Parse arguments and print the analysis report."""
    parser = argparse.ArgumentParser(
        description="Rank each token of a text within a language model's predictions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  %(prog)s "some text"                    # Default model
  %(prog)s --file essay.txt --prefix 1    # Predict from the second token on
  %(prog)s --mock "hello world"           # No model download
""",
    )
    parser.add_argument("text", nargs="?", help="Text to analyze.")
    parser.add_argument(
        "--file",
        type=Path,
        default=None,
        help="Read the text from this file instead of the command line.",
    )
    parser.add_argument(
        "--max-length",
        type=int,
        default=None,
        help="Analyze only the first N tokens.",
    )
    parser.add_argument(
        "--prefix",
        type=int,
        default=None,
        help="Number of leading tokens recorded without prediction (default: 3).",
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use the mock predictor and word-level codec.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable per-token and debug logging.",
    )
    args = parser.parse_args()

    if args.file is not None:
        text = args.file.read_text(encoding="utf-8")
    elif args.text is not None:
        text = args.text
    else:
        parser.error("either TEXT or --file is required")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    settings: dict[str, object] = {}
    if args.max_length is not None:
        settings["max_length"] = args.max_length
    if args.prefix is not None:
        settings["initial_tokens_count"] = args.prefix
    if not args.verbose:
        settings["log_level"] = "none"
    if args.mock:
        settings["predictor_type"] = "mock"

    try:
        config = TokenRankConfig(**settings)  # type: ignore[arg-type]
        report = run(text, config, args.mock)
    except (TokenRankError, ValidationError) as exc:
        logger.error("Analysis failed: %s", exc)
        sys.exit(1)

    sys.stdout.write(report)


if __name__ == "__main__":
    main()
