"""Regulation RAG - cached, retrieval-augmented Q&A over building regulations.

This package provides a layered architecture for answering questions about
condominium management regulations:

Layers:
    - protocols: Interface contracts (EmbeddingProvider, VectorStore, CompletionProvider)
    - repositories: OpenAI, Ollama and Supabase clients, in-memory vector store
    - services: Caches, fuzzy matching, ranking, retrieval, orchestration
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from regulation_rag.services import CacheService, ChatOrchestrator

    caches = CacheService.create()
    orchestrator = ChatOrchestrator(completion=provider, cache_service=caches)
    ```

For HTTP API:
    ```python
    from regulation_rag.api.app import app
    ```
"""

from regulation_rag.config import get_settings, settings
from regulation_rag.entities import CacheEntry, CacheStats, OrchestrationResult, RankedChunk, RetrievedChunk
from regulation_rag.errors import DraftGenerationError, ProviderError, RegulationRagError
from regulation_rag.protocols import CompletionProvider, EmbeddingProvider, VectorStore
from regulation_rag.services import (
    AnswerEnhancer,
    CacheService,
    ChatOrchestrator,
    KeyMatcher,
    ResultRanker,
    RetrievalService,
    TTLCache,
)

__all__ = [
    # Configuration
    "settings",
    "get_settings",
    # Errors
    "RegulationRagError",
    "ProviderError",
    "DraftGenerationError",
    # Protocols (interfaces)
    "CompletionProvider",
    "EmbeddingProvider",
    "VectorStore",
    # Services (business logic)
    "AnswerEnhancer",
    "CacheService",
    "ChatOrchestrator",
    "KeyMatcher",
    "ResultRanker",
    "RetrievalService",
    "TTLCache",
    # Entities (domain models)
    "CacheEntry",
    "CacheStats",
    "OrchestrationResult",
    "RankedChunk",
    "RetrievedChunk",
]
