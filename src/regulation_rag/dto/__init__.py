"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import ChatMessage, ChatRequest, SearchRequest
from .responses import (
    CacheStatsItem,
    CacheStatsResponse,
    ChatResponse,
    ErrorResponse,
    HealthCheckResponse,
    PopularEntryItem,
    SearchResponse,
    SearchResultItem,
)

__all__ = [
    "ChatMessage",
    "ChatRequest",
    "SearchRequest",
    "ChatResponse",
    "ErrorResponse",
    "SearchResultItem",
    "SearchResponse",
    "CacheStatsItem",
    "CacheStatsResponse",
    "PopularEntryItem",
    "HealthCheckResponse",
]
