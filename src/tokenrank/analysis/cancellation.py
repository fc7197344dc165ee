"""Cooperative cancellation for analyzer runs."""

from __future__ import annotations

import threading

from tokenrank.exceptions import AnalysisCancelledError


class CancellationToken:
    """Flag checked by the analyzer at every suspension point.

    Safe to cancel from another thread or from a progress subscriber.
    Cancelling is idempotent and cannot be undone.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason = ""

    def cancel(self, reason: str = "cancelled by caller") -> None:
        """Request cancellation of the run observing this token."""
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def raise_if_cancelled(self) -> None:
        """Raise AnalysisCancelledError if cancellation was requested.

        The analyzer attaches the results produced so far when it
        re-raises; this method only signals the condition.
        """
        if self._event.is_set():
            raise AnalysisCancelledError(f"Analysis cancelled: {self._reason}")
