"""
Out-of-Stock — Query Cache

In-process cache for filtered pages and status counts. One lock guards
every map; it is held only for dictionary work, never across a store
round-trip.

Invalidation bumps a generation counter. A page computed before an
invalidation carries the old generation and is dropped on put, so a slow
reader can never resurrect data that a mutation has already made stale.

@file out_of_stock/cache.py
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from core.constants import (
    DEFAULT_CACHE_MAX_ENTRIES,
    DEFAULT_CACHE_TTL,
    DEFAULT_STATUS_COUNT_TTL,
)

from .criteria import PageResult

logger = logging.getLogger('backorderdesk')

EVICTION_TARGET = 0.75


@dataclass(frozen=True)
class CacheEntry:
    value: object
    expires_at: float
    stored_at: float


class CacheLayer:
    """
    Fingerprint-keyed page cache with a separate short-lived cache for
    status counts and filtered totals. Each map holds at most max_entries.
    """

    def __init__(
        self,
        *,
        ttl: float = DEFAULT_CACHE_TTL,
        status_count_ttl: float = DEFAULT_STATUS_COUNT_TTL,
        max_entries: int = DEFAULT_CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.status_count_ttl = status_count_ttl
        self.max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()
        self._pages: dict[str, CacheEntry] = {}
        self._counts: dict[str, CacheEntry] = {}
        self._generation = 0
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._dropped_puts = 0

    # -- pages ------------------------------------------------------------

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def get(self, fingerprint: str) -> PageResult | None:
        with self._lock:
            return self._read(self._pages, fingerprint)

    def put(self, fingerprint: str, page: PageResult, generation: int | None = None) -> bool:
        """
        Store a page. Returns False when the put was dropped because the
        page was computed under an older generation.
        """
        with self._lock:
            if generation is not None and generation != self._generation:
                self._dropped_puts += 1
                return False
            if fingerprint not in self._pages and len(self._pages) >= self.max_entries:
                self._evict(self._pages)
            now = self._clock()
            self._pages[fingerprint] = CacheEntry(page, now + self.ttl, now)
            return True

    def invalidate_all(self) -> None:
        with self._lock:
            self._generation += 1
            self._pages.clear()
            self._counts.clear()
            generation = self._generation
        logger.debug('Out-of-stock cache invalidated (generation %s)', generation)

    # -- status counts / totals -------------------------------------------

    def get_status_counts(self, fingerprint: str) -> dict | None:
        with self._lock:
            return self._read(self._counts, 'status:' + fingerprint)

    def put_status_counts(self, fingerprint: str, counts: dict, generation: int | None = None) -> bool:
        return self._put_count('status:' + fingerprint, dict(counts), generation)

    def get_filtered_count(self, fingerprint: str) -> int | None:
        with self._lock:
            return self._read(self._counts, 'total:' + fingerprint)

    def put_filtered_count(self, fingerprint: str, total: int, generation: int | None = None) -> bool:
        return self._put_count('total:' + fingerprint, total, generation)

    def invalidate_status_counts(self) -> None:
        with self._lock:
            self._counts.clear()

    # -- introspection ----------------------------------------------------

    def stats(self) -> dict:
        with self._lock:
            lookups = self._hits + self._misses
            return {
                'entries': len(self._pages),
                'count_entries': len(self._counts),
                'max_entries': self.max_entries,
                'generation': self._generation,
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': round(self._hits / lookups, 4) if lookups else 0.0,
                'evictions': self._evictions,
                'dropped_puts': self._dropped_puts,
            }

    def __len__(self):
        with self._lock:
            return len(self._pages)

    # -- internals (caller holds the lock) --------------------------------

    def _read(self, store: dict[str, CacheEntry], key: str):
        entry = store.get(key)
        if entry is None:
            self._misses += 1
            return None
        if self._clock() >= entry.expires_at:
            del store[key]
            self._misses += 1
            return None
        self._hits += 1
        return entry.value

    def _put_count(self, key: str, value, generation: int | None) -> bool:
        with self._lock:
            if generation is not None and generation != self._generation:
                self._dropped_puts += 1
                return False
            if key not in self._counts and len(self._counts) >= self.max_entries:
                self._evict(self._counts)
            now = self._clock()
            self._counts[key] = CacheEntry(value, now + self.status_count_ttl, now)
            return True

    def _evict(self, store: dict[str, CacheEntry]) -> None:
        now = self._clock()
        expired = [key for key, entry in store.items() if now >= entry.expires_at]
        for key in expired:
            del store[key]
        evicted = len(expired)

        target = int(self.max_entries * EVICTION_TARGET)
        if len(store) >= self.max_entries:
            oldest = sorted(store, key=lambda key: store[key].stored_at)
            for key in oldest[:len(store) - target]:
                del store[key]
                evicted += 1

        self._evictions += evicted
        logger.debug('Out-of-stock cache evicted %s entries', evicted)
