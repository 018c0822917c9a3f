"""
Client-side anti-spam throttling for suggestion submissions.

One global cooldown for the whole process. A successful check consumes the
permit: `can_send()` starts a new window the moment it answers "allowed",
whether or not the caller goes on to submit. A refused check leaves the
window untouched.

This is advisory throttling only, not a security boundary.
"""

import logging
import math
import threading
import time
from collections.abc import Callable

from .models import RateLimitDecision

logger = logging.getLogger(__name__)

DEFAULT_MIN_INTERVAL_SECONDS = 60.0


def wait_message(seconds: int) -> str:
    return (
        f"Veuillez attendre {seconds} secondes avant d'envoyer une nouvelle suggestion."
    )


class RateLimiter:
    """Single check-and-commit gate over the last accepted submission time."""

    def __init__(
        self,
        min_interval_seconds: float = DEFAULT_MIN_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the limiter.

        Args:
            min_interval_seconds: Minimum time between accepted submissions
            clock: Returns the current time in seconds (injectable for tests)
        """
        self.min_interval = float(min_interval_seconds)
        self._clock = clock
        self._last_accepted_at = 0.0  # never
        self._lock = threading.Lock()

    def can_send(self) -> RateLimitDecision:
        """Check whether a submission may proceed, consuming the permit if so."""
        with self._lock:
            now = self._clock()
            elapsed = now - self._last_accepted_at

            if elapsed < self.min_interval:
                wait = max(1, math.ceil(self.min_interval - elapsed))
                logger.info(f"Submission throttled, {wait}s remaining")
                return RateLimitDecision(
                    allowed=False,
                    message=wait_message(wait),
                    wait_seconds=wait,
                )

            self._last_accepted_at = now
            return RateLimitDecision(allowed=True)


_default_limiter: RateLimiter | None = None
_default_lock = threading.Lock()


def get_rate_limiter(min_interval_seconds: float | None = None) -> RateLimiter:
    """
    Return the process-wide limiter, creating it on first use.

    The interval only applies on creation; later calls share the existing window.
    """
    global _default_limiter
    with _default_lock:
        if _default_limiter is None:
            _default_limiter = RateLimiter(
                min_interval_seconds
                if min_interval_seconds is not None
                else DEFAULT_MIN_INTERVAL_SECONDS
            )
        return _default_limiter
