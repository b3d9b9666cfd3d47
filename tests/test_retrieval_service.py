"""
Tests for RetrievalService: embedding caching and graceful degradation.
"""

from conftest import DEFINITION_CHUNK, FakeEmbeddingProvider, FakeVectorStore

from regulation_rag.services import RetrievalService


async def test_retrieve_returns_chunks_and_metrics(retrieval, vector_store):
    result = await retrieval.retrieve("管理費とは")

    assert not result.is_empty
    assert result.metrics.result_count == 2
    assert not result.metrics.embedding_cache_hit
    assert vector_store.calls == [(0.3, 5)]


async def test_second_retrieve_hits_embedding_cache(retrieval, embedding_provider):
    await retrieval.retrieve("管理費とは")
    result = await retrieval.retrieve("管理費とは？")

    assert embedding_provider.calls == ["管理費とは"]
    assert result.metrics.embedding_cache_hit


async def test_explicit_threshold_and_limit(retrieval, vector_store):
    await retrieval.retrieve("管理費", threshold=0.5, max_results=1)
    assert vector_store.calls == [(0.5, 1)]


async def test_embedding_failure_degrades_to_empty(cache_service, ranker, vector_store):
    service = RetrievalService(FakeEmbeddingProvider(fail=True), vector_store, cache_service, ranker)
    result = await service.retrieve("管理費とは")

    assert result.is_empty
    assert vector_store.calls == []


async def test_vector_store_failure_degrades_to_empty(cache_service, ranker, embedding_provider):
    service = RetrievalService(embedding_provider, FakeVectorStore(fail=True), cache_service, ranker)
    result = await service.retrieve("管理費とは")

    assert result.is_empty
    # The embedding was computed before the failure and stays cached
    assert cache_service.get_embedding("管理費とは") is not None


async def test_blank_query_skips_providers(retrieval, embedding_provider):
    result = await retrieval.retrieve("   ")
    assert result.is_empty
    assert embedding_provider.calls == []


async def test_search_returns_ranked_previews(retrieval):
    previews, metrics = await retrieval.search("管理費とは", k=1)

    assert len(previews) == 1
    assert previews[0].ranked.chunk == DEFINITION_CHUNK
    assert "定義文" in previews[0].labels
    assert metrics.result_count == 2


async def test_health_check(retrieval, cache_service, ranker, embedding_provider):
    assert await retrieval.health_check() == {"embedding": True, "vector_store": True}

    broken = RetrievalService(embedding_provider, FakeVectorStore(fail=True), cache_service, ranker)
    assert await broken.health_check() == {"embedding": True, "vector_store": False}
