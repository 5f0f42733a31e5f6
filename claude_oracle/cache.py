"""In-memory cache where every entry carries its own time-to-live."""

import time
from dataclasses import dataclass
from typing import Any, Callable, Optional


@dataclass
class CacheEntry:
    data: Any
    created_at: float
    ttl: float  # seconds

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl


@dataclass
class CacheStats:
    entries: int
    keys: list[str]


class ExpiringCache:
    """
    Key/value store with per-entry TTL and lazy eviction.

    Expired entries are only removed when they are read; there is no
    background sweep. One instance is created at startup and shared by the
    aggregator and every source, so keys must be namespaced per source
    ("<catalog>:<subkey>").
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._store: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None if missing or expired."""
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._store[key]
            return None
        return entry.data

    def set(self, key: str, value: Any, ttl: float) -> None:
        self._store[key] = CacheEntry(data=value, created_at=self._clock(), ttl=ttl)

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def created_at(self, key: str) -> Optional[float]:
        """Creation instant of a live entry, evicting it if expired."""
        if not self.has(key):
            return None
        return self._store[key].created_at

    def clear(self) -> None:
        self._store.clear()

    def stats(self) -> CacheStats:
        return CacheStats(entries=len(self._store), keys=list(self._store.keys()))
