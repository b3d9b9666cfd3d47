"""Domain entities for internal representation.

These are plain dataclasses used internally by services and repositories.
They are NOT used for API contracts - use DTOs from the dto package for that.
"""

from .cache_entry import CacheEntry, CacheStats
from .chunk import ChunkClassification, ChunkPreview, RankedChunk, RetrievedChunk
from .retrieval import OrchestrationResult, RetrievalMetrics, RetrievalResult

__all__ = [
    "CacheEntry",
    "CacheStats",
    "ChunkClassification",
    "ChunkPreview",
    "RankedChunk",
    "RetrievedChunk",
    "RetrievalMetrics",
    "RetrievalResult",
    "OrchestrationResult",
]
