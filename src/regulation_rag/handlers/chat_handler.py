"""HTTP handlers for chat, search and cache operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes, validation, and error handling.
"""

from dataclasses import asdict

import structlog
from fastapi import HTTPException, status

from regulation_rag.dto import (
    CacheStatsItem,
    CacheStatsResponse,
    ChatRequest,
    ChatResponse,
    HealthCheckResponse,
    PopularEntryItem,
    SearchRequest,
    SearchResponse,
    SearchResultItem,
)
from regulation_rag.errors import DraftGenerationError
from regulation_rag.protocols import ChatMessageDict, CompletionProvider
from regulation_rag.services import CacheService, ChatOrchestrator, RetrievalService

logger = structlog.get_logger(__name__)


class ChatHandler:
    """HTTP handlers for the chat pipeline.

    This handler delegates business logic to ChatOrchestrator, RetrievalService
    and CacheService, and handles HTTP-specific concerns like:
    - Converting entities to DTOs
    - Setting appropriate status codes
    - Error handling and responses

    ``DraftGenerationError`` propagates to the app-level exception handler,
    which renders it as ``{"error", "details"}``.

    Example:
        ```python
        handler = ChatHandler(orchestrator, cache_service, completion, retrieval)

        @app.post("/chat", response_model=ChatResponse)
        async def chat(request: ChatRequest):
            return await handler.chat(request)
        ```
    """

    def __init__(
        self,
        orchestrator: ChatOrchestrator,
        cache_service: CacheService,
        completion: CompletionProvider,
        retrieval: RetrievalService | None = None,
    ) -> None:
        """Initialize the chat handler.

        Args:
            orchestrator: Produces answers (required).
            cache_service: Cache operations for the /cache endpoints (required).
            completion: Completion provider, reported in health output.
            retrieval: Retrieval service for /search. None when RAG is not configured.
        """
        self._orchestrator = orchestrator
        self._cache = cache_service
        self._completion = completion
        self._retrieval = retrieval

    async def chat(self, request: ChatRequest) -> ChatResponse:
        """Handle POST /chat requests.

        Raises:
            DraftGenerationError: If the draft answer could not be generated
            HTTPException: On any other unexpected failure
        """
        messages: list[ChatMessageDict] = [
            {"role": m.role, "content": m.content} for m in request.messages
        ]
        try:
            result = await self._orchestrator.answer(messages, rag_enabled=request.rag_enabled)
        except DraftGenerationError:
            raise
        except Exception as e:
            logger.exception("chat request failed")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to answer: {e}",
            ) from e

        return ChatResponse(content=result.content, cached=result.cached, diagnostics=result.diagnostics)

    async def search(self, request: SearchRequest) -> SearchResponse:
        """Handle POST /search requests.

        Raises:
            HTTPException: 503 when no retrieval backend is configured
        """
        if self._retrieval is None:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Retrieval is not configured (set SUPABASE_URL and SUPABASE_KEY)",
            )

        try:
            previews, metrics = await self._retrieval.search(request.query, k=request.k)
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to search: {e}",
            ) from e

        return SearchResponse(
            query=request.query,
            results=[
                SearchResultItem(
                    text=p.ranked.text,
                    preview=p.preview,
                    relevant_parts=p.relevant_parts,
                    labels=p.labels,
                    similarity=p.ranked.similarity,
                    score=round(p.ranked.combined_score, 4),
                    metadata=p.ranked.chunk.metadata,
                )
                for p in previews
            ],
            metrics=metrics.to_dict(),
        )

    async def get_stats(self) -> CacheStatsResponse:
        """Handle GET /cache/stats requests."""
        try:
            stats = self._cache.stats()
            return CacheStatsResponse(
                response=CacheStatsItem(**asdict(stats["response"])),
                embedding=CacheStatsItem(**asdict(stats["embedding"])),
                settings=self._cache.describe(),
            )
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to get stats: {e}",
            ) from e

    async def popular(self, limit: int = 5) -> list[PopularEntryItem]:
        """Handle GET /cache/popular requests."""
        return [
            PopularEntryItem(
                key=entry.key,
                hit_count=entry.hit_count,
                created_at=entry.created_at,
                expires_at=entry.expires_at,
            )
            for entry in self._cache.popular_responses(limit)
        ]

    async def cleanup(self) -> dict:
        """Handle POST /cache/cleanup requests."""
        removed = self._cache.cleanup()
        return {
            "success": True,
            "removed": removed,
            "message": f"Removed {sum(removed.values())} expired entries",
        }

    async def clear_cache(self) -> dict:
        """Handle DELETE /cache requests."""
        try:
            self._cache.clear()
            return {"success": True, "message": "Cache cleared successfully"}
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to clear cache: {e}",
            ) from e

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests."""
        embedding_healthy = vector_store_healthy = None
        if self._retrieval is not None:
            checks = await self._retrieval.health_check()
            embedding_healthy = checks["embedding"]
            vector_store_healthy = checks["vector_store"]

        degraded = embedding_healthy is False or vector_store_healthy is False
        return HealthCheckResponse(
            status="degraded" if degraded else "healthy",
            completion_model=self._completion.model_name,
            rag_available=self._retrieval is not None,
            embedding_healthy=embedding_healthy,
            vector_store_healthy=vector_store_healthy,
            cleanup_running=self._cache.is_running,
        )
