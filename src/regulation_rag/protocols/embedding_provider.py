"""Embedding provider protocol.

Defines the interface for any embedding generation service that can
convert text to vector embeddings.

Implementations can include:
- OpenAI embeddings (API, default)
- Ollama embeddings (local)
- Any other service returning a fixed-length vector
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol for embedding generation services.

    Any type that implements these members satisfies the protocol,
    no explicit inheritance needed.
    """

    @property
    def dimension(self) -> int:
        """Return the dimension of the embedding vectors.

        Returns:
            The vector dimension (e.g., 1536 for text-embedding-ada-002)
        """
        ...

    @property
    def model_name(self) -> str:
        """Return the name/identifier of the model."""
        ...

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Args:
            text: The text to encode

        Returns:
            The embedding vector as a list of floats

        Raises:
            ProviderError: If the provider is unreachable or returns garbage
        """
        ...

    async def is_available(self) -> bool:
        """Check if the embedding provider is available."""
        ...
