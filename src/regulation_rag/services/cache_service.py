"""Cache service owning the response and embedding caches.

Constructed once at process start and injected into the orchestrator and
the retrieval service. Every cache access goes through this service, which
turns internal errors into misses so the cache can never fail a request.
"""

import asyncio
import contextlib
from typing import Any

import structlog

from regulation_rag.config import Settings, settings
from regulation_rag.entities import CacheEntry, CacheStats

from .key_matcher import KeyMatcher, normalize
from .ttl_cache import TTLCache

logger = structlog.get_logger(__name__)


class CacheService:
    """Two independent TTL/LRU stores plus fuzzy response lookup.

    Lifecycle:
        ``start()`` launches the periodic cleanup sweep on the running event
        loop, ``stop()`` cancels it. Both are idempotent.

    Example:
        ```python
        caches = CacheService.create()
        await caches.start()
        answer = caches.lookup_response("管理費とは", rag_enabled=True)
        ...
        await caches.stop()
        ```
    """

    def __init__(
        self,
        response_cache: TTLCache,
        embedding_cache: TTLCache,
        matcher: KeyMatcher | None = None,
        cleanup_interval: float | None = None,
    ) -> None:
        """Initialize the cache service.

        Args:
            response_cache: Store for final answers (small, short TTL).
            embedding_cache: Store for query embeddings (large, long TTL).
            matcher: Fuzzy key matcher. Defaults to settings threshold.
            cleanup_interval: Seconds between cleanup sweeps. Defaults to settings.
        """
        self._responses = response_cache
        self._embeddings = embedding_cache
        self._matcher = matcher or KeyMatcher(threshold=settings.fuzzy_match_threshold)
        self._cleanup_interval = cleanup_interval or settings.cache_cleanup_interval
        self._cleanup_task: asyncio.Task | None = None

    @classmethod
    def create(cls, config: Settings | None = None) -> "CacheService":
        """Factory method building both stores from settings.

        Args:
            config: Settings to read sizes/TTLs from. Defaults to the global settings.

        Returns:
            Configured CacheService (cleanup not started)
        """
        config = config or settings
        return cls(
            response_cache=TTLCache(
                name="response",
                max_size=config.response_cache_size,
                default_ttl=config.response_cache_ttl,
            ),
            embedding_cache=TTLCache(
                name="embedding",
                max_size=config.embedding_cache_size,
                default_ttl=config.embedding_cache_ttl,
            ),
            matcher=KeyMatcher(threshold=config.fuzzy_match_threshold),
            cleanup_interval=config.cache_cleanup_interval,
        )

    # Response cache

    @staticmethod
    def response_key(question: str, rag_enabled: bool) -> str:
        mode = "rag" if rag_enabled else "plain"
        return f"{mode}:{normalize(question)}"

    def lookup_response(self, question: str, rag_enabled: bool) -> str | None:
        """Exact lookup, then fuzzy lookup among keys of the same mode.

        Returns:
            The cached answer, or None on a miss or internal error
        """
        try:
            key = self.response_key(question, rag_enabled)
            if not self._responses.contains(key):
                prefix = key.split(":", 1)[0] + ":"
                candidates = [k[len(prefix):] for k in self._responses.live_keys() if k.startswith(prefix)]
                similar = self._matcher.find_similar(key[len(prefix):], candidates)
                if similar is not None:
                    logger.info("response cache fuzzy match", question=question, matched=similar)
                    key = prefix + similar
            return self._responses.get(key)
        except Exception as e:
            logger.warning("response cache lookup failed", error=str(e))
            return None

    def store_response(
        self,
        question: str,
        rag_enabled: bool,
        content: str,
        ttl: float | None = None,
    ) -> None:
        try:
            self._responses.set(self.response_key(question, rag_enabled), content, ttl)
        except Exception as e:
            logger.warning("response cache write failed", error=str(e))

    # Embedding cache

    def get_embedding(self, text: str) -> list[float] | None:
        try:
            return self._embeddings.get(normalize(text))
        except Exception as e:
            logger.warning("embedding cache lookup failed", error=str(e))
            return None

    def store_embedding(self, text: str, vector: list[float]) -> None:
        try:
            self._embeddings.set(normalize(text), vector)
        except Exception as e:
            logger.warning("embedding cache write failed", error=str(e))

    # Maintenance

    def cleanup(self) -> dict[str, int]:
        """Sweep expired entries from both stores.

        Returns:
            Number of removed entries per store
        """
        removed = {}
        for cache in (self._responses, self._embeddings):
            try:
                removed[cache.name] = cache.cleanup()
            except Exception as e:
                logger.warning("cache cleanup failed", cache=cache.name, error=str(e))
                removed[cache.name] = 0
        return removed

    def clear(self) -> None:
        self._responses.clear()
        self._embeddings.clear()
        logger.info("caches cleared")

    def stats(self) -> dict[str, CacheStats]:
        return {
            self._responses.name: self._responses.stats(),
            self._embeddings.name: self._embeddings.stats(),
        }

    def popular_responses(self, limit: int = 5) -> list[CacheEntry]:
        return self._responses.popular_entries(limit)

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self._cleanup_interval)
            self.cleanup()

    async def start(self) -> None:
        """Start the periodic cleanup sweep."""
        if self._cleanup_task is None or self._cleanup_task.done():
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())
            logger.info("cache cleanup scheduled", interval_seconds=self._cleanup_interval)

    async def stop(self) -> None:
        """Cancel the periodic cleanup sweep."""
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._cleanup_task
            self._cleanup_task = None

    @property
    def is_running(self) -> bool:
        return self._cleanup_task is not None and not self._cleanup_task.done()

    @property
    def response_cache(self) -> TTLCache:
        """Get the underlying response store (for testing)."""
        return self._responses

    @property
    def embedding_cache(self) -> TTLCache:
        """Get the underlying embedding store (for testing)."""
        return self._embeddings

    @property
    def matcher(self) -> KeyMatcher:
        return self._matcher

    def describe(self) -> dict[str, Any]:
        return {
            "fuzzy_threshold": self._matcher.threshold,
            "cleanup_interval": self._cleanup_interval,
            "response_capacity": self._responses.max_size,
            "embedding_capacity": self._embeddings.max_size,
        }
