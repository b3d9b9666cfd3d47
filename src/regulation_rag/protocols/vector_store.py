"""Vector similarity store protocol.

The store holds regulation chunks with precomputed embeddings and answers
a single similarity query. Implementations can include:
- Supabase/pgvector through an RPC function (default)
- An in-process numpy index (development and tests)
"""

from typing import Protocol, runtime_checkable

from regulation_rag.entities import RetrievedChunk


@runtime_checkable
class VectorStore(Protocol):
    """Protocol for vector similarity search backends."""

    async def search(
        self,
        vector: list[float],
        threshold: float,
        max_results: int,
    ) -> list[RetrievedChunk]:
        """Find chunks similar to a query vector.

        Args:
            vector: The query embedding vector
            threshold: Minimum cosine similarity for a hit (0-1)
            max_results: Maximum number of chunks to return

        Returns:
            Chunks sorted by similarity, most similar first (may be empty)

        Raises:
            ProviderError: If the store is unreachable or misconfigured
        """
        ...

    async def health_check(self) -> bool:
        """Check if the store is reachable."""
        ...
