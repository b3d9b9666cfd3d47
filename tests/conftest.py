"""
Shared fixtures and fake providers for the test suite.
"""

import asyncio

import pytest

from regulation_rag.config import Settings
from regulation_rag.entities import RetrievedChunk
from regulation_rag.errors import ProviderError
from regulation_rag.services import (
    AnswerEnhancer,
    CacheService,
    ChatOrchestrator,
    RankingWeights,
    ResultRanker,
    RetrievalService,
    TTLCache,
)

DEFINITION_CHUNK = RetrievedChunk(
    text="一 管理費 区分所有者が管理組合に納入する費用のうち、共用部分の通常の管理に要する経費に充てるものをいう。",
    similarity=0.4,
)
UNMARKED_CHUNK = RetrievedChunk(
    text="管理費の支払いが遅れた場合には、理事長が督促を行うことができる。",
    similarity=0.4,
)
ARTICLE_CHUNK = RetrievedChunk(
    text="第25条 区分所有者は、管理費及び修繕積立金を管理組合に納入しなければならない。",
    similarity=0.45,
)


class FakeClock:
    """Manually advanced time source for TTL tests."""

    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeEmbeddingProvider:
    """Deterministic embedding provider that counts calls."""

    def __init__(self, fail: bool = False, dimension: int = 4) -> None:
        self.fail = fail
        self.calls: list[str] = []
        self._dimension = dimension

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return "fake-embedding"

    async def encode(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail:
            raise ProviderError("embedding service unavailable")
        return [float(len(text)), 1.0, 0.0, 0.0][: self._dimension]

    async def is_available(self) -> bool:
        return not self.fail


class FakeVectorStore:
    """Vector store returning a fixed list of chunks."""

    def __init__(self, chunks: list[RetrievedChunk] | None = None, fail: bool = False, delay: float = 0.0) -> None:
        self.chunks = chunks or []
        self.fail = fail
        self.delay = delay
        self.calls: list[tuple[float, int]] = []

    async def search(self, vector: list[float], threshold: float, max_results: int) -> list[RetrievedChunk]:
        self.calls.append((threshold, max_results))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ProviderError("vector store unavailable")
        return self.chunks[:max_results]

    async def health_check(self) -> bool:
        return not self.fail


class FakeCompletionProvider:
    """Completion provider that tells draft and refinement calls apart by temperature."""

    def __init__(
        self,
        draft: str = "管理費は共用部分の管理に使われる費用です。",
        enhanced: str = "管理費とは、共用部分の通常の管理に要する経費に充てる費用をいいます。",
        fail_draft: bool = False,
        fail_enhance: bool = False,
        draft_delay: float = 0.0,
    ) -> None:
        self.draft = draft
        self.enhanced = enhanced
        self.fail_draft = fail_draft
        self.fail_enhance = fail_enhance
        self.draft_delay = draft_delay
        self.calls: list[dict] = []

    @property
    def model_name(self) -> str:
        return "fake-chat"

    @property
    def draft_calls(self) -> int:
        return sum(1 for c in self.calls if c["temperature"] == 0.8)

    @property
    def enhance_calls(self) -> int:
        return sum(1 for c in self.calls if c["temperature"] == 0.3)

    async def complete(self, messages, max_tokens, temperature) -> str:
        self.calls.append({"messages": messages, "max_tokens": max_tokens, "temperature": temperature})
        if temperature == 0.3:
            if self.fail_enhance:
                raise ProviderError("enhancement model overloaded")
            return self.enhanced

        if self.draft_delay:
            await asyncio.sleep(self.draft_delay)
        if self.fail_draft:
            raise ProviderError("Incorrect API key provided")
        return self.draft


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        openai_api_key="sk-test",
        supabase_url="https://example.supabase.co",
        supabase_key="service-key",
        draft_timeout=1.0,
        retrieval_timeout=1.0,
        enhance_timeout=1.0,
        log_json=False,
    )


@pytest.fixture
def cache_service(test_settings) -> CacheService:
    return CacheService.create(test_settings)


@pytest.fixture
def ranker(test_settings) -> ResultRanker:
    return ResultRanker(RankingWeights.from_settings(test_settings))


@pytest.fixture
def embedding_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def vector_store() -> FakeVectorStore:
    return FakeVectorStore([DEFINITION_CHUNK, UNMARKED_CHUNK])


@pytest.fixture
def completion() -> FakeCompletionProvider:
    return FakeCompletionProvider()


@pytest.fixture
def retrieval(embedding_provider, vector_store, cache_service, ranker, test_settings) -> RetrievalService:
    return RetrievalService(
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        cache_service=cache_service,
        ranker=ranker,
        threshold=test_settings.retrieval_threshold,
        max_results=test_settings.retrieval_max_results,
    )


@pytest.fixture
def orchestrator(completion, cache_service, retrieval, test_settings) -> ChatOrchestrator:
    return ChatOrchestrator(
        completion=completion,
        cache_service=cache_service,
        retrieval=retrieval,
        enhancer=AnswerEnhancer(completion, timeout=test_settings.enhance_timeout),
        config=test_settings,
    )


def make_cache(clock: FakeClock, max_size: int = 10, ttl: float = 60.0) -> TTLCache:
    return TTLCache(name="test", max_size=max_size, default_ttl=ttl, clock=clock)
