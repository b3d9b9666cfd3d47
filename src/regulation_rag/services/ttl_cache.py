"""In-process key/value store with TTL expiry and LRU eviction."""

import json
import time
from collections.abc import Callable
from typing import Any

import structlog

from regulation_rag.entities import CacheEntry, CacheStats

logger = structlog.get_logger(__name__)


class TTLCache:
    """Bounded key/value store with per-entry TTL and LRU eviction.

    Expired entries are removed lazily on ``get`` and in bulk by ``cleanup``;
    the sweep only bounds memory, correctness never depends on it.

    There is no lock. Every method runs to completion without awaiting, so
    under asyncio each mutation is atomic with respect to other requests.
    Sharing an instance across threads would need a mutex around each call.

    Example:
        ```python
        cache = TTLCache(name="response", max_size=100, default_ttl=1800)
        cache.set("rag:管理費とは", "管理費とは…")
        cache.get("rag:管理費とは")
        ```
    """

    def __init__(
        self,
        name: str,
        max_size: int,
        default_ttl: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the store.

        Args:
            name: Label used in logs
            max_size: Maximum number of entries before LRU eviction
            default_ttl: TTL in seconds used when ``set`` gets none
            clock: Time source returning Unix seconds (injectable for tests)
        """
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        if default_ttl <= 0:
            raise ValueError("default_ttl must be positive")

        self.name = name
        self._max_size = max_size
        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Insert or overwrite an entry.

        Args:
            key: Lookup key
            value: Payload to store
            ttl: Time-to-live in seconds. Defaults to the store's default TTL.
        """
        ttl = self._default_ttl if ttl is None else ttl
        if ttl <= 0:
            raise ValueError("ttl must be positive")

        if key not in self._entries and len(self._entries) >= self._max_size:
            self._evict_lru()

        now = self._clock()
        self._entries[key] = CacheEntry(
            key=key,
            value=value,
            created_at=now,
            expires_at=now + ttl,
            hit_count=0,
            last_accessed_at=now,
        )
        logger.debug("cache set", cache=self.name, key=key, ttl=ttl)

    def get(self, key: str) -> Any | None:
        """Look up an entry by exact key.

        Returns:
            The stored value, or None on a miss (absent or expired)
        """
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        now = self._clock()
        if entry.is_expired(now):
            del self._entries[key]
            self._misses += 1
            logger.debug("cache entry expired", cache=self.name, key=key)
            return None

        entry.hit_count += 1
        entry.last_accessed_at = now
        self._hits += 1
        return entry.value

    def contains(self, key: str) -> bool:
        """Check for a live key without touching stats or LRU order."""
        entry = self._entries.get(key)
        return entry is not None and not entry.is_expired(self._clock())

    def keys(self) -> list[str]:
        """Snapshot of the current keys in insertion order, expired ones included."""
        return list(self._entries)

    def live_keys(self) -> list[str]:
        """Snapshot of the non-expired keys in insertion order."""
        now = self._clock()
        return [key for key, entry in self._entries.items() if not entry.is_expired(now)]

    def _evict_lru(self) -> None:
        # min() keeps the first of equal timestamps, so ties go to the oldest insert
        victim = min(self._entries.values(), key=lambda e: e.last_accessed_at)
        del self._entries[victim.key]
        logger.debug("cache LRU eviction", cache=self.name, key=victim.key)

    def cleanup(self) -> int:
        """Remove every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]

        if expired:
            logger.info("cache cleanup", cache=self.name, removed=len(expired))
        return len(expired)

    def clear(self) -> None:
        """Remove all entries and reset hit/miss counters."""
        self._entries.clear()
        self._hits = 0
        self._misses = 0

    def popular_entries(self, limit: int = 5) -> list[CacheEntry]:
        """Entries with the highest hit counts, most popular first."""
        return sorted(self._entries.values(), key=lambda e: e.hit_count, reverse=True)[:limit]

    def stats(self) -> CacheStats:
        """Compute a statistics snapshot."""
        entries = list(self._entries.values())
        total = self._hits + self._misses
        return CacheStats(
            total_entries=len(entries),
            capacity=self._max_size,
            hit_rate=self._hits / total if total else 0.0,
            total_hits=self._hits,
            total_misses=self._misses,
            size_bytes=self._approximate_size(entries),
            oldest_entry=min((e.created_at for e in entries), default=None),
            newest_entry=max((e.created_at for e in entries), default=None),
        )

    @staticmethod
    def _approximate_size(entries: list[CacheEntry]) -> int:
        size = 0
        for entry in entries:
            size += len(entry.key.encode())
            size += len(json.dumps(entry.value, ensure_ascii=False, default=str).encode())
        return size

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def default_ttl(self) -> float:
        return self._default_ttl

    def __len__(self) -> int:
        return len(self._entries)
