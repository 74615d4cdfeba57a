"""
TTL response cache keyed by (url, extraction profile).

Entries are evicted lazily: an expired entry is only removed when it is
looked up (or when stats are taken).
"""

import copy
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .types import BrowsingResult, ExtractionProfile

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str]


@dataclass
class CacheEntry:
    result: BrowsingResult
    expires_at: float


class ResponseCache:
    """
    Thread-safe cache of successful fetch results.

    Results are copied on the way in and out so callers may mutate them.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def make_key(url: str, profile: ExtractionProfile) -> CacheKey:
        return (url, ExtractionProfile.parse(profile).value)

    def get(self, url: str, profile: ExtractionProfile) -> Optional[BrowsingResult]:
        key = self.make_key(url, profile)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                logger.debug(f"Cache entry expired for {url} [{key[1]}]")
                return None
            logger.debug(f"Cache hit for {url} [{key[1]}]")
            return copy.deepcopy(entry.result)

    def put(
        self,
        url: str,
        profile: ExtractionProfile,
        result: BrowsingResult,
        ttl: float,
    ) -> None:
        if ttl <= 0:
            return
        key = self.make_key(url, profile)
        with self._lock:
            self._entries[key] = CacheEntry(
                result=copy.deepcopy(result), expires_at=self._clock() + ttl
            )
        logger.info(f"Cached {url} [{key[1]}] for {ttl:.0f}s")

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info(f"Cleared {count} cached responses")

    def stats(self) -> dict:
        """Live entry count and the keys currently held."""
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if now >= e.expires_at]
            for key in expired:
                del self._entries[key]
            return {
                "size": len(self._entries),
                "keys": [f"{url}:{profile}" for url, profile in self._entries],
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
