"""Diagnostic logger for per-token analysis events.

Uses the standard ``logging`` module with the ``"tokenrank"`` logger.
No ``print()`` statements. Supports three verbosity levels and an
in-memory diagnostic mode for post-hoc analysis.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tokenrank.config import TokenRankConfig
    from tokenrank.logging.types import TokenAnalysisRecord

logger = logging.getLogger("tokenrank")


class AnalysisLogger:
    """Per-token diagnostic logger.

    Log levels:
        ``"none"``: No logging output. Records are still stored if
        ``diagnostic_mode=True``.

        ``"summary"``: One INFO line per position with rank, probability,
        cumulative probability and inference time. Failed predictions
        are tagged ``[FAILED]``.

        ``"full"``: Full JSON dump of every record.

    Diagnostic mode stores all records in memory for post-hoc analysis via
    ``get_diagnostic_data()`` and ``get_summary_stats()``.
    """

    def __init__(self, config: TokenRankConfig) -> None:
        self._log_level = config.log_level
        self._diagnostic_mode = config.diagnostic_mode
        self._records: list[TokenAnalysisRecord] = []

    def log_token(self, record: TokenAnalysisRecord) -> None:
        """Log a single analyzed position."""
        if self._diagnostic_mode:
            self._records.append(record)

        if self._log_level == "none":
            return

        if self._log_level == "summary":
            if record.is_initial:
                logger.info("pos=%d token=%d initial", record.position, record.token_id)
                return
            logger.info(
                "pos=%d token=%d rank=%s prob=%s cum=%s infer=%.2fms total=%.2fms%s",
                record.position,
                record.token_id,
                "-" if record.rank is None else record.rank,
                "-" if record.probability is None else f"{record.probability:.4f}",
                "-"
                if record.cumulative_probability is None
                else f"{record.cumulative_probability:.4f}",
                record.inference_ms,
                record.total_ms,
                " [FAILED]" if record.failed else "",
            )
        elif self._log_level == "full":
            logger.info("analysis_record: %s", json.dumps(asdict(record), default=str))

    def get_diagnostic_data(self) -> list[TokenAnalysisRecord]:
        """Return all stored records (requires ``diagnostic_mode=True``)."""
        return list(self._records)

    def clear(self) -> None:
        """Drop all stored records."""
        self._records.clear()

    def get_summary_stats(self) -> dict[str, Any]:
        """Compute timing and failure statistics over stored records.

        Returns:
            Dictionary with aggregate stats, or empty dict if no records.
        """
        if not self._records:
            return {}

        attempted = [r for r in self._records if not r.is_initial]
        inference_times = [r.inference_ms for r in attempted]
        failure_count = sum(1 for r in attempted if r.failed)

        stats: dict[str, Any] = {
            "total_tokens": len(self._records),
            "attempted_tokens": len(attempted),
            "failure_count": failure_count,
            "failure_rate": failure_count / len(attempted) if attempted else 0.0,
            "mean_inference_ms": 0.0,
            "max_inference_ms": 0.0,
            "mean_total_ms": sum(r.total_ms for r in self._records) / len(self._records),
        }
        if inference_times:
            stats["mean_inference_ms"] = sum(inference_times) / len(inference_times)
            stats["max_inference_ms"] = max(inference_times)
        return stats
