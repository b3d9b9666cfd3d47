"""Retrieval and orchestration result entities."""

from dataclasses import dataclass, field
from typing import Any

from .chunk import RetrievedChunk


@dataclass(frozen=True)
class RetrievalMetrics:
    """Timing breakdown of one retrieval call, in milliseconds."""

    embedding_ms: float = 0.0
    vector_search_ms: float = 0.0
    total_ms: float = 0.0
    embedding_cache_hit: bool = False
    result_count: int = 0

    def to_dict(self) -> dict[str, float | int | bool]:
        return {
            "embedding_ms": self.embedding_ms,
            "vector_search_ms": self.vector_search_ms,
            "total_ms": self.total_ms,
            "embedding_cache_hit": self.embedding_cache_hit,
            "result_count": self.result_count,
        }


@dataclass(frozen=True)
class RetrievalResult:
    """Raw (pre-ranking) chunks plus timing metrics."""

    chunks: list[RetrievedChunk]
    metrics: RetrievalMetrics = field(default_factory=RetrievalMetrics)

    @property
    def is_empty(self) -> bool:
        return not self.chunks


@dataclass(frozen=True)
class OrchestrationResult:
    """Final answer of a chat request."""

    content: str
    cached: bool
    diagnostics: dict[str, Any] = field(default_factory=dict)
