"""
Per-domain sliding-window rate limiter.

Trackers are created on demand and keep the timestamps of admitted
requests inside the trailing window. Shared across threads, so every
window update happens under one lock.
"""

import logging
import threading
import time
from collections import deque
from typing import Callable

from .types import RATE_LIMIT_WINDOW

logger = logging.getLogger(__name__)


class DomainRateLimiter:
    """Admit at most N requests per domain in any trailing window."""

    def __init__(
        self,
        window: float = RATE_LIMIT_WINDOW,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window = window
        self._clock = clock
        self._requests: dict[str, deque[float]] = {}
        self._limits: dict[str, int] = {}
        self._lock = threading.Lock()

    def _prune(self, domain: str, now: float) -> deque[float]:
        timestamps = self._requests.setdefault(domain, deque())
        cutoff = now - self.window
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()
        return timestamps

    def can_make_request(self, domain: str, max_per_minute: int) -> bool:
        """Check the window without recording anything."""
        with self._lock:
            self._limits[domain] = max_per_minute
            return len(self._prune(domain, self._clock())) < max_per_minute

    def record_request(self, domain: str) -> None:
        with self._lock:
            now = self._clock()
            self._prune(domain, now).append(now)

    def acquire(self, domain: str, max_per_minute: int) -> bool:
        """
        Check and record in one step.

        Returns:
            True if the request was admitted and recorded
        """
        with self._lock:
            self._limits[domain] = max_per_minute
            now = self._clock()
            timestamps = self._prune(domain, now)
            if len(timestamps) >= max_per_minute:
                logger.warning(
                    f"Rate limit reached for {domain} "
                    f"({len(timestamps)}/{max_per_minute} in {self.window:.0f}s)"
                )
                return False
            timestamps.append(now)
            return True

    def status(self) -> dict[str, dict[str, int]]:
        """Current window count and ceiling for every tracked domain."""
        with self._lock:
            now = self._clock()
            return {
                domain: {
                    "count": len(self._prune(domain, now)),
                    "limit": self._limits.get(domain, 0),
                }
                for domain in list(self._requests)
            }

    def reset(self) -> None:
        with self._lock:
            self._requests.clear()
            self._limits.clear()
