"""Cache entry and cache statistics entities."""

from dataclasses import dataclass
from typing import Any


@dataclass
class CacheEntry:
    """A single value held by a TTLCache.

    Mutable on purpose: reads bump ``hit_count`` and ``last_accessed_at``
    in place. Owned by exactly one cache store.

    Attributes:
        key: Lookup key
        value: Opaque payload (answer text, embedding vector, ...)
        created_at: Unix timestamp of insertion
        expires_at: Unix timestamp after which the entry is logically absent
        hit_count: Number of successful reads
        last_accessed_at: Unix timestamp of the last read or write (LRU order)
    """

    key: str
    value: Any
    created_at: float
    expires_at: float
    hit_count: int = 0
    last_accessed_at: float = 0.0

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class CacheStats:
    """Read-only snapshot of a cache store, recomputed on demand."""

    total_entries: int
    capacity: int
    hit_rate: float
    total_hits: int
    total_misses: int
    size_bytes: int
    oldest_entry: float | None
    newest_entry: float | None
