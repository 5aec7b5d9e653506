"""Bounded in-memory cache with LRU eviction and idle-time expiry.

Backs the rate limiter store: a fixed number of keys, the least recently
accessed one dropped first, and any key left idle for ``ttl_ms`` forgotten.
Time is always passed in by the caller (epoch milliseconds) so the owner
decides which clock the cache follows.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Generic, Iterator, TypeVar

from app.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

V = TypeVar("V")


@dataclass
class CacheItem(Generic[V]):
    """Container for a cached value with access metadata."""

    value: V
    created_ms: int
    last_access_ms: int


class LRUTTLCache(Generic[V]):
    """Thread-safe, in-memory LRU cache with per-entry idle expiry.

    Attributes:
        max_entries: Maximum number of entries held at once.
        ttl_ms: Idle time after which an entry is treated as absent.
    """

    def __init__(self, *, max_entries: int, ttl_ms: int) -> None:
        if max_entries < 1:
            raise ConfigurationError(
                code="cache_config_invalid",
                message="max_entries must be >= 1",
                details={"field": "max_entries", "actual_value": max_entries},
            )
        if ttl_ms < 1:
            raise ConfigurationError(
                code="cache_config_invalid",
                message="ttl_ms must be >= 1",
                details={"field": "ttl_ms", "actual_value": ttl_ms},
            )

        self._max_entries = max_entries
        self._ttl_ms = ttl_ms
        self._store: OrderedDict[str, CacheItem[V]] = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"LRUTTLCache(max_entries={self._max_entries}, ttl_ms={self._ttl_ms}, "
            f"size={len(self._store)}, hits={self._hits}, misses={self._misses}, "
            f"evictions={self._evictions}, expirations={self._expirations})"
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._store

    def __iter__(self) -> Iterator[str]:
        # Snapshot, least recently used first.
        with self._lock:
            return iter(list(self._store.keys()))

    @property
    def max_entries(self) -> int:
        return self._max_entries

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    def get(self, key: str, now_ms: int) -> V | None:
        """Retrieve a value if present and not idle-expired.

        A hit marks the entry as most recently used and refreshes its
        last-access time.

        Args:
            key: Cache key.
            now_ms: Current time in epoch milliseconds.

        Returns:
            Cached value or None if not found/expired.
        """

        with self._lock:
            item = self._store.get(key)
            if item is None:
                self._misses += 1
                return None

            if self._is_expired(item, now_ms):
                self._expire_single(key)
                self._misses += 1
                logger.debug("cache.miss", extra={"reason": "expired", "size": len(self._store)})
                return None

            self._hits += 1
            self._touch(key, item, now_ms)
            return item.value

    def set(self, key: str, value: V, now_ms: int) -> None:
        """Store a value, evicting expired and then least recently used entries.

        Updating an existing key only refreshes its recency. Inserting a new
        key first sweeps expired entries, then drops the oldest entries until
        the size bound holds. The key being inserted is never evicted.

        Args:
            key: Cache key.
            value: Value to store.
            now_ms: Current time in epoch milliseconds.
        """

        with self._lock:
            item = self._store.get(key)
            if item is not None:
                item.value = value
                self._touch(key, item, now_ms)
                return

            self._sweep_locked(now_ms)
            self._store[key] = CacheItem(value=value, created_ms=now_ms, last_access_ms=now_ms)
            self._evict_if_over_capacity_locked()

    def sweep(self, now_ms: int) -> int:
        """Remove every idle-expired entry.

        Returns:
            Number of entries removed.
        """

        with self._lock:
            return self._sweep_locked(now_ms)

    def clear(self) -> None:
        """Remove all cached entries and reset counters."""

        with self._lock:
            self._store.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0
            self._expirations = 0

    def stats(self) -> dict[str, int]:
        """Return lightweight cache metrics without exposing values."""

        with self._lock:
            return {
                "ttl_ms": self._ttl_ms,
                "max_entries": self._max_entries,
                "entries": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "expirations": self._expirations,
            }

    def _touch(self, key: str, item: CacheItem[V], now_ms: int) -> None:
        # A regressed clock must not move last access backwards.
        item.last_access_ms = max(item.last_access_ms, now_ms)
        self._store.move_to_end(key)

    def _expire_single(self, key: str) -> None:
        if self._store.pop(key, None) is not None:
            self._expirations += 1

    def _sweep_locked(self, now_ms: int) -> int:
        expired_keys = [k for k, item in self._store.items() if self._is_expired(item, now_ms)]
        for key in expired_keys:
            self._expire_single(key)
        if expired_keys:
            logger.debug(
                "cache.swept",
                extra={"expired": len(expired_keys), "size": len(self._store)},
            )
        return len(expired_keys)

    def _evict_if_over_capacity_locked(self) -> None:
        while len(self._store) > self._max_entries:
            # popitem(last=False) removes the least recently used entry;
            # entries never touched since insertion keep creation order.
            self._store.popitem(last=False)
            self._evictions += 1
            logger.debug(
                "cache.evicted",
                extra={"reason": "capacity", "size": len(self._store)},
            )

    def _is_expired(self, item: CacheItem[V], now_ms: int) -> bool:
        return now_ms - item.last_access_ms >= self._ttl_ms
