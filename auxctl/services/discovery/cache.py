"""
In-memory TTL cache for discovery results.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from ...core.models.discovery import DEFAULT_CACHE_TTL, CachedVersionResult, CacheKey


class VersionCache:
    """
    Caches candidate lists per query for a fixed time.

    Entries are replaced whole and expired entries are dropped on access,
    never refreshed in place.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[CacheKey, CachedVersionResult] = {}

    def get(self, key: CacheKey) -> list | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self.ttl, now=self._clock()):
                del self._entries[key]
                return None
            return list(entry.candidates)

    def put(self, key: CacheKey, candidates: list) -> None:
        with self._lock:
            self._entries[key] = CachedVersionResult(
                key=key, candidates=list(candidates), timestamp=self._clock()
            )

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
