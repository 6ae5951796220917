from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from polysearch.orchestrator.models import MergedResultSet
from polysearch.types import Provider

MAX_CACHE_ENTRIES = 100


@dataclass(frozen=True)
class CacheKey:
    """Cache key for one search: normalized query plus the provider set."""

    query: str
    providers: frozenset[Provider]

    @classmethod
    def build(cls, query: str, providers: Iterable[Provider]) -> CacheKey:
        """Build a key insensitive to query case, padding and provider order."""
        return cls(query=query.strip().lower(), providers=frozenset(providers))


@dataclass(frozen=True)
class _Entry:
    value: MergedResultSet
    expires_at: float


class ResultCache:
    """Bounded in-memory cache of merged search results with a fixed TTL.

    The least recently used entry is evicted once ``max_entries`` is reached.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float,
        max_entries: int = MAX_CACHE_ENTRIES,
        now_fn: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._ttl_seconds = ttl_seconds
        self._max_entries = max_entries
        self._now_fn = now_fn
        self._entries: dict[CacheKey, _Entry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: CacheKey) -> MergedResultSet | None:
        """Return the cached value for ``key`` unless missing or expired."""
        with self._lock:
            entry = self._entries.pop(key, None)
            if entry is None:
                return None
            if entry.expires_at <= self._now_fn():
                return None
            self._entries[key] = entry
            return entry.value

    def put(self, key: CacheKey, value: MergedResultSet) -> None:
        """Store ``value`` under ``key``, evicting the oldest entry if full."""
        with self._lock:
            self._entries.pop(key, None)
            while len(self._entries) >= self._max_entries:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
            self._entries[key] = _Entry(
                value=value,
                expires_at=self._now_fn() + self._ttl_seconds,
            )

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._entries.clear()
