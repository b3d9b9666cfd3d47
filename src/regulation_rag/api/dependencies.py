"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - A ServiceContainer is built once (or injected by tests) and the lifespan
      stores it in app.state
    - Dependency functions retrieve from request.app.state
    - No global mutable state
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Annotated

import structlog
from fastapi import Depends, FastAPI, Request

from regulation_rag.config import Settings, settings
from regulation_rag.handlers import ChatHandler
from regulation_rag.logging_config import configure_logging
from regulation_rag.protocols import CompletionProvider, EmbeddingProvider, VectorStore
from regulation_rag.repositories import (
    InMemoryVectorStore,
    OllamaEmbeddingProvider,
    OpenAICompletionProvider,
    OpenAIEmbeddingProvider,
    SupabaseVectorStore,
)
from regulation_rag.services import (
    AnswerEnhancer,
    CacheService,
    ChatOrchestrator,
    RankingWeights,
    ResultRanker,
    RetrievalService,
)

logger = structlog.get_logger(__name__)


@dataclass
class ServiceContainer:
    """Every long-lived object of the app, wired together."""

    completion: CompletionProvider
    cache_service: CacheService
    orchestrator: ChatOrchestrator
    handler: ChatHandler
    retrieval: RetrievalService | None = None
    embedding_provider: EmbeddingProvider | None = None
    vector_store: VectorStore | None = None

    @classmethod
    def assemble(
        cls,
        completion: CompletionProvider,
        embedding_provider: EmbeddingProvider | None = None,
        vector_store: VectorStore | None = None,
        cache_service: CacheService | None = None,
        config: Settings | None = None,
    ) -> "ServiceContainer":
        """Wire services around the given providers.

        Retrieval is enabled only when both an embedding provider and a
        vector store are given.
        """
        config = config or settings
        cache_service = cache_service or CacheService.create(config)
        ranker = ResultRanker(RankingWeights.from_settings(config))

        retrieval = None
        if embedding_provider is not None and vector_store is not None:
            retrieval = RetrievalService(
                embedding_provider=embedding_provider,
                vector_store=vector_store,
                cache_service=cache_service,
                ranker=ranker,
                threshold=config.retrieval_threshold,
                max_results=config.retrieval_max_results,
            )

        orchestrator = ChatOrchestrator(
            completion=completion,
            cache_service=cache_service,
            retrieval=retrieval,
            enhancer=AnswerEnhancer(completion, timeout=config.enhance_timeout),
            config=config,
        )
        handler = ChatHandler(
            orchestrator=orchestrator,
            cache_service=cache_service,
            completion=completion,
            retrieval=retrieval,
        )
        return cls(
            completion=completion,
            cache_service=cache_service,
            orchestrator=orchestrator,
            handler=handler,
            retrieval=retrieval,
            embedding_provider=embedding_provider,
            vector_store=vector_store,
        )

    async def close(self) -> None:
        """Close provider HTTP clients."""
        for component in (self.completion, self.embedding_provider, self.vector_store):
            close = getattr(component, "close", None)
            if close is not None:
                await close()


def build_vector_store(config: Settings) -> VectorStore:
    """Build the vector store selected by VECTOR_BACKEND."""
    if config.vector_backend == "memory":
        store = InMemoryVectorStore()
        if config.vector_seed_file:
            store.load_file(config.vector_seed_file)
        else:
            logger.warning("memory vector store has no seed file, searches will be empty")
        return store
    return SupabaseVectorStore.create(config)


def build_container(config: Settings | None = None) -> ServiceContainer:
    """Build the production container from settings."""
    config = config or settings
    completion = OpenAICompletionProvider.create(model_name=config.completion_model)

    embedding_provider: EmbeddingProvider | None = None
    vector_store: VectorStore | None = None
    if config.retrieval_configured:
        # ⚠️ The vector store must have been populated with the same embedding model
        if config.embedding_backend == "ollama":
            embedding_provider = OllamaEmbeddingProvider.create(
                model_name=config.embedding_model,
                base_url=config.ollama_base_url,
            )
        else:
            embedding_provider = OpenAIEmbeddingProvider.create(model_name=config.embedding_model)
        vector_store = build_vector_store(config)
    else:
        logger.warning("supabase not configured, retrieval disabled")

    return ServiceContainer.assemble(
        completion=completion,
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        config=config,
    )


def get_container(request: Request) -> ServiceContainer:
    """Dependency injection for the ServiceContainer from app.state.

    Raises:
        RuntimeError: If the container is not initialized
    """
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise RuntimeError("ServiceContainer not initialized. Check lifespan setup.")
    return container


def get_handler(request: Request) -> ChatHandler:
    """Dependency injection for ChatHandler from app.state."""
    return get_container(request).handler


def make_lifespan(container: ServiceContainer | None = None):
    """Create the lifespan context manager for the app.

    Args:
        container: Pre-built services (tests inject fakes here). When None the
            production container is built from settings at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        services = container or build_container()
        app.state.container = services

        await services.cache_service.start()
        logger.info(
            "service initialized",
            completion_model=services.completion.model_name,
            rag_available=services.retrieval is not None,
            **services.cache_service.describe(),
        )

        yield

        await services.cache_service.stop()
        await services.close()
        del app.state.container
        logger.info("service shut down")

    return lifespan


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[ChatHandler, Depends(get_handler)]

