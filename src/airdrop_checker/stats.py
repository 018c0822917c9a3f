"""
In-memory email delivery statistics.

Counters live for the lifetime of the process and are never persisted.
"""

import threading

from .models import EmailStats, NotificationOutcome


class StatsTracker:
    """Counts admin notification successes and failures."""

    def __init__(self) -> None:
        self._sent = 0
        self._failed = 0
        self._last_error = None
        self._lock = threading.Lock()

    def record(self, outcome: NotificationOutcome) -> None:
        """Count one outcome. A failure replaces the previous last error."""
        with self._lock:
            if outcome.success:
                self._sent += 1
            else:
                self._failed += 1
                self._last_error = outcome.error

    def snapshot(self) -> EmailStats:
        """Return a copy of the current counters."""
        with self._lock:
            return EmailStats(
                sent=self._sent,
                failed=self._failed,
                last_error=self._last_error,
            )


_default_tracker = StatsTracker()


def get_stats_tracker() -> StatsTracker:
    """Return the process-wide tracker."""
    return _default_tracker
