"""Service layer for business logic.

This layer contains the caching, retrieval, ranking and orchestration logic.
Services depend on protocols (interfaces), not concrete implementations,
making them testable with fake providers.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (External APIs)

Usage:
    ```python
    from regulation_rag.services import CacheService, ChatOrchestrator

    caches = CacheService.create()
    orchestrator = ChatOrchestrator(completion=provider, cache_service=caches)
    result = await orchestrator.answer(messages, rag_enabled=False)
    ```
"""

from .answer_enhancer import AnswerEnhancer
from .cache_service import CacheService
from .chat_orchestrator import ChatOrchestrator, build_search_query, latest_question
from .key_matcher import KeyMatcher, normalize
from .ranker import RankingWeights, ResultRanker, classify, extract_keywords
from .retrieval_service import RetrievalService
from .ttl_cache import TTLCache

__all__ = [
    "AnswerEnhancer",
    "CacheService",
    "ChatOrchestrator",
    "KeyMatcher",
    "RankingWeights",
    "ResultRanker",
    "RetrievalService",
    "TTLCache",
    "build_search_query",
    "classify",
    "extract_keywords",
    "latest_question",
    "normalize",
]
