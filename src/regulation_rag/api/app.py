from typing import Any

from fastapi import FastAPI, Query, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from regulation_rag.api.dependencies import HandlerDep, ServiceContainer, make_lifespan
from regulation_rag.config import settings
from regulation_rag.dto import (
    CacheStatsResponse,
    ChatRequest,
    ChatResponse,
    ErrorResponse,
    HealthCheckResponse,
    PopularEntryItem,
    SearchRequest,
    SearchResponse,
)
from regulation_rag.errors import DraftGenerationError

API_TITLE = "Regulation RAG API"
API_VERSION = "0.1.0"
API_DESCRIPTION = "Cached, retrieval-augmented Q&A over condominium management regulations"


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures as 400 ``{error, details}``."""
    error = "メッセージが必要です" if request.url.path == "/chat" else "リクエストが不正です"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": error, "details": jsonable_encoder(exc.errors())},
    )


async def draft_error_handler(request: Request, exc: DraftGenerationError) -> JSONResponse:
    """Render a failed draft as 500 ``{error, details}``."""
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "AI応答エラー", "details": exc.details},
    )


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        container: Pre-built services. When None, production services are
            built from settings during startup.

    Returns:
        The configured FastAPI app
    """
    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        lifespan=make_lifespan(container),
    )

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DraftGenerationError, draft_error_handler)  # type: ignore[arg-type]

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": API_TITLE,
            "version": API_VERSION,
            "description": API_DESCRIPTION,
            "endpoints": {
                "chat": "/chat",
                "search": "/search",
                "cache": "/cache",
                "health": "/health",
                "docs": "/docs",
            },
        }

    @app.get("/health", response_model=HealthCheckResponse)
    async def health(handler: HandlerDep) -> HealthCheckResponse:
        """Health check endpoint."""
        return await handler.health_check()

    @app.post(
        "/chat",
        response_model=ChatResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def chat(request: ChatRequest, handler: HandlerDep) -> ChatResponse:
        """
        Answer the latest question of a conversation.

        Checks the response cache first; on a miss, drafts an answer while
        retrieving regulation text, then refines the draft with the best chunks.
        """
        return await handler.chat(request)

    @app.post("/search", response_model=SearchResponse)
    async def search(request: SearchRequest, handler: HandlerDep) -> SearchResponse:
        """Ranked regulation chunks for a query, without answer generation."""
        return await handler.search(request)

    @app.get("/cache/stats", response_model=CacheStatsResponse)
    async def cache_stats(handler: HandlerDep) -> CacheStatsResponse:
        """Get response and embedding cache statistics."""
        return await handler.get_stats()

    @app.get("/cache/popular", response_model=list[PopularEntryItem])
    async def cache_popular(
        handler: HandlerDep,
        limit: int = Query(5, ge=1, le=50),
    ) -> list[PopularEntryItem]:
        """Most frequently hit response cache entries."""
        return await handler.popular(limit)

    @app.post("/cache/cleanup", response_model=dict[str, Any])
    async def cache_cleanup(handler: HandlerDep) -> dict[str, Any]:
        """Remove expired entries from both caches now."""
        return await handler.cleanup()

    @app.delete("/cache", response_model=dict[str, Any])
    async def clear_cache(handler: HandlerDep) -> dict[str, Any]:
        """Clear all entries from both caches."""
        return await handler.clear_cache()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "regulation_rag.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
