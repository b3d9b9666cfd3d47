"""Response DTOs for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class ChatResponse(BaseModel):
    """Response DTO for POST /chat."""

    content: str = Field(..., description="Final answer text")
    cached: bool = Field(..., description="Whether the answer came from the response cache")
    diagnostics: dict[str, Any] = Field(
        default_factory=dict,
        description="Visited states, timings and context counts",
    )


class ErrorResponse(BaseModel):
    """Body of 400 and 500 responses from POST /chat."""

    error: str = Field(..., description="Short error message")
    details: Any = Field(None, description="Underlying cause")


class SearchResultItem(BaseModel):
    """One ranked chunk in a search response."""

    text: str = Field(..., description="Full chunk text")
    preview: str = Field(..., description="Excerpt of the parts matching the query")
    relevant_parts: list[str] = Field(default_factory=list, description="Matching clauses and sentences")
    labels: list[str] = Field(default_factory=list, description="Structural tags (定義文, 条文, 住戸リスト)")
    similarity: float = Field(..., description="Vector similarity reported by the store")
    score: float = Field(..., description="Combined ranking score")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Store-specific fields")


class SearchResponse(BaseModel):
    """Response DTO for POST /search."""

    query: str = Field(..., description="The original query")
    results: list[SearchResultItem] = Field(default_factory=list, description="Ranked chunks, best first")
    metrics: dict[str, float | int | bool] = Field(default_factory=dict, description="Retrieval timings")


class CacheStatsItem(BaseModel):
    """Statistics of one cache store."""

    total_entries: int = Field(..., ge=0)
    capacity: int = Field(..., ge=1)
    hit_rate: float = Field(..., ge=0.0, le=1.0)
    total_hits: int = Field(..., ge=0)
    total_misses: int = Field(..., ge=0)
    size_bytes: int = Field(..., ge=0, description="Approximate serialized size")
    oldest_entry: float | None = Field(None, description="Creation time of the oldest entry (Unix timestamp)")
    newest_entry: float | None = Field(None, description="Creation time of the newest entry (Unix timestamp)")


class CacheStatsResponse(BaseModel):
    """Response DTO for GET /cache/stats."""

    response: CacheStatsItem
    embedding: CacheStatsItem
    settings: dict[str, Any] = Field(default_factory=dict, description="Cache configuration")


class PopularEntryItem(BaseModel):
    """A frequently hit response cache entry."""

    key: str
    hit_count: int = Field(..., ge=0)
    created_at: float
    expires_at: float


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'degraded'")
    completion_model: str = Field(..., description="Model used for drafts and refinement")
    rag_available: bool = Field(..., description="Whether a retrieval backend is configured")
    embedding_healthy: bool | None = Field(None, description="Whether the embedding service is reachable")
    vector_store_healthy: bool | None = Field(None, description="Whether the vector store is reachable")
    cleanup_running: bool = Field(..., description="Whether the periodic cache sweep is active")
