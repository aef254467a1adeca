"""Short-lived per-collection read cache.

Sits in front of the object storage medium so that a burst of reads within
one request (or a handful of requests) costs a single network round trip.
Entries are never evicted by size; they are replaced by fresher reads and
writes, or dropped by :meth:`ReadCache.invalidate`.
"""

from __future__ import annotations

import copy
import threading
import time
from dataclasses import dataclass
from typing import Callable

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_TTL_SECONDS = 1.0


@dataclass(frozen=True)
class CacheEntry:
    records: list[dict]
    version: str | None
    timestamp: float


class ReadCache:
    """Thread-safe TTL cache keyed by collection name.

    Records are deep-copied on the way in and on the way out, so callers
    that mutate what they read never corrupt the cached snapshot.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def ttl(self) -> float:
        return self._ttl

    def get(self, name: str) -> CacheEntry | None:
        """Return a fresh entry for *name*, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(name)
            if entry is None:
                return None
            if self._clock() - entry.timestamp >= self._ttl:
                logger.debug("cache_expired", collection=name)
                return None
            logger.debug("cache_hit", collection=name, records=len(entry.records))
            return _copy_entry(entry)

    def peek(self, name: str) -> CacheEntry | None:
        """Return the entry for *name* regardless of its age."""
        with self._lock:
            entry = self._entries.get(name)
            return _copy_entry(entry) if entry is not None else None

    def put(self, name: str, records: list[dict], version: str | None) -> None:
        with self._lock:
            self._entries[name] = CacheEntry(
                records=copy.deepcopy(records),
                version=version,
                timestamp=self._clock(),
            )

    def invalidate(self, name: str) -> None:
        with self._lock:
            if self._entries.pop(name, None) is not None:
                logger.debug("cache_invalidated", collection=name)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict:
        with self._lock:
            now = self._clock()
            fresh = sum(
                1 for e in self._entries.values() if now - e.timestamp < self._ttl
            )
            return {
                "total_entries": len(self._entries),
                "fresh_entries": fresh,
                "ttl_seconds": self._ttl,
            }


def _copy_entry(entry: CacheEntry) -> CacheEntry:
    return CacheEntry(
        records=copy.deepcopy(entry.records),
        version=entry.version,
        timestamp=entry.timestamp,
    )
