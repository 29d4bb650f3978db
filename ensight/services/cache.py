"""Bounded in-process cache with per-entry expiry.

ENS records change rarely, so resolution results are memoized here to save
RPC round trips. Expiry is lazy: an expired entry is dropped when it is read,
there is no background sweep. When full, the oldest *inserted* entry is evicted
regardless of how often it has been read. Only a new key makes room: setting a
key that is already tracked replaces it in place and evicts nothing, even at
capacity, so a refresh never pushes out an unrelated entry.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from ensight.settings import DEFAULT_CACHE_MAX_ENTRIES, DEFAULT_CACHE_TTL_SECONDS, CacheSettings


@dataclass
class CacheEntry:
    """A cached value and the monotonic time at which it stops being visible."""
    key: str
    value: Any
    expires_at: float


class TTLCache:
    """Insertion-ordered key-value store with time-to-live.

    Args:
        ttl_seconds: Default time-to-live for entries set without an override
        max_entries: Capacity; inserting a new key at capacity evicts one entry
        clock: Monotonic clock in seconds, injectable for tests
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        max_entries: int = DEFAULT_CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        # dicts keep insertion order; overwriting a key keeps its position
        self._store: Dict[str, CacheEntry] = {}

    @classmethod
    def from_settings(cls, settings: CacheSettings, clock: Callable[[], float] = time.monotonic) -> "TTLCache":
        return cls(settings.ttl_seconds, settings.max_entries, clock=clock)

    def get(self, key: str) -> Optional[Any]:
        """Return the live value for ``key`` or None, evicting it if expired."""
        entry = self._store.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._store[key]
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        """Store ``value`` under ``key``.

        A new key arriving at capacity evicts the oldest inserted entry first.
        """
        if key not in self._store and len(self._store) >= self.max_entries:
            oldest = next(iter(self._store))
            del self._store[oldest]
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        self._store[key] = CacheEntry(key=key, value=value, expires_at=self._clock() + ttl)

    def has(self, key: str) -> bool:
        """True while ``key`` holds a live entry, whatever its value."""
        if key not in self._store:
            return False
        if self._clock() >= self._store[key].expires_at:
            del self._store[key]
            return False
        return True

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        # Includes expired entries that have not been read yet.
        return len(self._store)

    @property
    def size(self) -> int:
        return len(self._store)
