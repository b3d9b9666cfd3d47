"""Retrieved and ranked chunk entities."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RetrievedChunk:
    """Domain entity for a vector similarity hit.

    Attributes:
        text: The chunk text
        similarity: Cosine similarity reported by the store (0-1)
        metadata: Store-specific fields (regulation name, union id, ...)
    """

    text: str
    similarity: float
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ChunkClassification:
    """Structural tags detected in a chunk."""

    is_definition: bool = False
    has_article: bool = False
    is_housing_list: bool = False


@dataclass(frozen=True)
class RankedChunk:
    """A retrieved chunk with the ranker's scores attached."""

    chunk: RetrievedChunk
    lexical_score: float
    classification: ChunkClassification
    combined_score: float

    @property
    def text(self) -> str:
        return self.chunk.text

    @property
    def similarity(self) -> float:
        return self.chunk.similarity

    @property
    def is_definition(self) -> bool:
        return self.classification.is_definition

    @property
    def has_structural_marker(self) -> bool:
        return self.classification.is_definition or self.classification.has_article


@dataclass(frozen=True)
class ChunkPreview:
    """Display-oriented excerpt of a ranked chunk."""

    ranked: RankedChunk
    relevant_parts: list[str]
    preview: str
    labels: list[str]
