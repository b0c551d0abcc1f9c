"""
Version discovery models.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")

DEFAULT_CACHE_TTL = 300.0


@dataclass(frozen=True)
class CacheKey:
    """Identity of a discovery query.

    Attributes:
        kind: "release-assets" or "registry-tags"
        source: repository or package URL as written in the document
        filter: regex filter, or empty
        release_tag: specific release tag, or empty for the latest release
    """

    kind: str
    source: str
    filter: str = ""
    release_tag: str = ""


@dataclass
class CachedVersionResult(Generic[T]):
    """Candidates returned by one successful discovery query."""

    key: CacheKey
    candidates: list[T] = field(default_factory=list)
    timestamp: float = field(default_factory=time.monotonic)

    def is_expired(self, ttl: float = DEFAULT_CACHE_TTL, now: float | None = None) -> bool:
        now = time.monotonic() if now is None else now
        return now - self.timestamp >= ttl
