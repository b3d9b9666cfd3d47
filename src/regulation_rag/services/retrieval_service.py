"""Embedding + vector search with embedding caching and graceful degradation."""

import time

import structlog

from regulation_rag.config import Settings, settings
from regulation_rag.entities import ChunkPreview, RetrievalMetrics, RetrievalResult
from regulation_rag.protocols import EmbeddingProvider, VectorStore

from .cache_service import CacheService
from .ranker import ResultRanker

logger = structlog.get_logger(__name__)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class RetrievalService:
    """Turns a query into ranked regulation chunks.

    Query embeddings are cached through the CacheService, so repeated or
    paraphrased-but-identical (after normalization) queries skip the
    embedding call. Any provider failure degrades to an empty result.
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        cache_service: CacheService,
        ranker: ResultRanker | None = None,
        threshold: float | None = None,
        max_results: int | None = None,
    ) -> None:
        self._embeddings = embedding_provider
        self._store = vector_store
        self._caches = cache_service
        self._ranker = ranker or ResultRanker()
        self._threshold = settings.retrieval_threshold if threshold is None else threshold
        self._max_results = max_results or settings.retrieval_max_results

    @classmethod
    def create(
        cls,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        cache_service: CacheService,
        config: Settings | None = None,
    ) -> "RetrievalService":
        config = config or settings
        return cls(
            embedding_provider=embedding_provider,
            vector_store=vector_store,
            cache_service=cache_service,
            threshold=config.retrieval_threshold,
            max_results=config.retrieval_max_results,
        )

    async def embed(self, query: str) -> tuple[list[float], bool]:
        """Return the query embedding and whether it came from the cache."""
        cached = self._caches.get_embedding(query)
        if cached is not None:
            return cached, True

        vector = await self._embeddings.encode(query)
        self._caches.store_embedding(query, vector)
        return vector, False

    async def retrieve(
        self,
        query: str,
        threshold: float | None = None,
        max_results: int | None = None,
    ) -> RetrievalResult:
        """Fetch raw chunks similar to ``query``.

        Args:
            query: Search text
            threshold: Minimum similarity (defaults to settings)
            max_results: Maximum number of chunks (defaults to settings)

        Returns:
            RetrievalResult; empty when the query is blank or a provider fails
        """
        threshold = self._threshold if threshold is None else threshold
        max_results = max_results or self._max_results

        if not query.strip():
            return RetrievalResult(chunks=[])

        start = time.perf_counter()
        try:
            vector, cache_hit = await self.embed(query)
            embedding_ms = _elapsed_ms(start)

            search_start = time.perf_counter()
            chunks = await self._store.search(vector, threshold, max_results)
            search_ms = _elapsed_ms(search_start)
        except Exception as e:
            logger.warning("retrieval failed", query=query, error=str(e))
            return RetrievalResult(chunks=[], metrics=RetrievalMetrics(total_ms=_elapsed_ms(start)))

        metrics = RetrievalMetrics(
            embedding_ms=embedding_ms,
            vector_search_ms=search_ms,
            total_ms=_elapsed_ms(start),
            embedding_cache_hit=cache_hit,
            result_count=len(chunks),
        )
        logger.info("retrieval complete", query=query, **metrics.to_dict())
        return RetrievalResult(chunks=chunks, metrics=metrics)

    async def search(self, query: str, k: int = 3) -> tuple[list[ChunkPreview], RetrievalMetrics]:
        """Retrieve, rank and build display previews for ``query``."""
        result = await self.retrieve(query)
        ranked = self._ranker.rank(result.chunks, query, k=k)
        return [self._ranker.preview(item, query) for item in ranked], result.metrics

    async def health_check(self) -> dict[str, bool]:
        checks = {}
        for name, probe in (("embedding", self._embeddings.is_available), ("vector_store", self._store.health_check)):
            try:
                checks[name] = bool(await probe())
            except Exception as e:
                logger.warning("health check failed", component=name, error=str(e))
                checks[name] = False
        return checks

    @property
    def ranker(self) -> ResultRanker:
        return self._ranker
