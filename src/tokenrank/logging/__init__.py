"""Diagnostic logging subsystem for tokenrank.

Provides immutable per-position analysis records and a configurable logger
that supports none/summary/full verbosity and in-memory diagnostic mode.
"""

from tokenrank.logging.logger import AnalysisLogger
from tokenrank.logging.types import TokenAnalysisRecord

__all__ = [
    "AnalysisLogger",
    "TokenAnalysisRecord",
]
