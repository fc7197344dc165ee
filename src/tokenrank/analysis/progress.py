"""Run-scoped progress fan-out.

A ProgressReporter lives for exactly one analyzer run. Subscribers are
passed in by the caller of that run and never outlive it.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from typing import Union

from tokenrank.analysis.types import AnalysisProgress

logger = logging.getLogger("tokenrank")

ProgressCallback = Callable[[AnalysisProgress], object]
ProgressSubscribers = Union[ProgressCallback, Iterable[ProgressCallback], None]


def _normalize(subscribers: ProgressSubscribers) -> list[ProgressCallback]:
    if subscribers is None:
        return []
    if callable(subscribers):
        return [subscribers]
    return list(subscribers)


class ProgressReporter:
    """Deliver progress events to every subscriber of one run.

    A subscriber that raises is logged and skipped; delivery continues
    with the remaining subscribers and the run is never interrupted.

    Args:
        total: Number of positions in the run.
        subscribers: A callable, an iterable of callables, or None.
        clock: Monotonic time source in seconds (injectable for tests).
    """

    def __init__(
        self,
        total: int,
        subscribers: ProgressSubscribers = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._total = total
        self._subscribers = _normalize(subscribers)
        self._clock = clock
        self._started_at = clock()

    @property
    def subscribers(self) -> list[ProgressCallback]:
        return list(self._subscribers)

    def build(self, position: int, token_text: str) -> AnalysisProgress:
        """Build the event for the position just processed."""
        current = position + 1
        elapsed = self._clock() - self._started_at
        remaining = self._total - current
        eta = (elapsed / current) * remaining if current > 0 else None
        return AnalysisProgress(
            current=current,
            total=self._total,
            percentage=(current / self._total) * 100 if self._total else 100.0,
            current_token=token_text,
            estimated_time_remaining=eta,
        )

    def report(self, position: int, token_text: str) -> AnalysisProgress:
        """Build the event for *position* and deliver it to all subscribers."""
        progress = self.build(position, token_text)
        self.notify(progress)
        return progress

    def notify(self, progress: AnalysisProgress) -> None:
        for callback in self._subscribers:
            try:
                callback(progress)
            except Exception:  # Intentional: one bad subscriber must not stop the run
                logger.warning(
                    "Progress subscriber %r raised at %d/%d",
                    callback,
                    progress.current,
                    progress.total,
                    exc_info=True,
                )
