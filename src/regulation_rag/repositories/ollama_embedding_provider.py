"""Ollama-based embedding provider.

Uses Ollama's local API to generate embeddings, for running the pipeline
without an OpenAI key.

Requirements:
    - Ollama installed: https://ollama.com
    - Model pulled: `ollama pull nomic-embed-text`
    - Ollama running: `ollama serve`

The vector store must hold chunks embedded with the same model; switching
backends requires re-embedding the regulation documents.
"""

import httpx

from regulation_rag.config import settings
from regulation_rag.errors import ProviderError


class OllamaEmbeddingProvider:
    """Ollama-based implementation of EmbeddingProvider protocol.

    This class satisfies the EmbeddingProvider protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        provider = OllamaEmbeddingProvider.create(model_name="nomic-embed-text")
        embedding = await provider.encode("管理費とは")
        print(len(embedding))  # 768
        ```
    """

    # Known model dimensions (for common models)
    MODEL_DIMENSIONS = {
        "embeddinggemma": 768,
        "nomic-embed-text": 768,
        "mxbai-embed-large": 1024,
        "all-minilm": 384,
    }

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the Ollama embedding provider.

        Args:
            model_name: Name of the Ollama model. Defaults to "nomic-embed-text".
            base_url: Ollama API base URL. Defaults to settings.ollama_base_url.
            timeout: Request timeout in seconds. Defaults to settings.http_timeout.
        """
        self._model_name = model_name or "nomic-embed-text"
        self._base_url = (base_url or settings.ollama_base_url).rstrip("/")
        self._timeout = timeout or settings.http_timeout
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def create(
        cls,
        model_name: str | None = None,
        base_url: str | None = None,
    ) -> "OllamaEmbeddingProvider":
        """Factory method to create OllamaEmbeddingProvider with defaults."""
        return cls(model_name=model_name, base_url=base_url)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    @property
    def dimension(self) -> int:
        # Unknown models default to 768
        return self.MODEL_DIMENSIONS.get(self._model_name, 768)

    @property
    def model_name(self) -> str:
        return self._model_name

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Args:
            text: The text to encode

        Returns:
            The embedding vector as a list of floats

        Raises:
            ProviderError: If the Ollama API request fails or the payload is malformed
        """
        url = f"{self._base_url}/api/embed"
        payload = {"model": self._model_name, "input": text}

        try:
            response = await self.client.post(url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            error_msg = f"Ollama API error: {e}"
            if "connection refused" in str(e).lower():
                error_msg += " (is Ollama running? try: ollama serve)"
            raise ProviderError(error_msg) from e

        # Ollama returns {"embeddings": [[...]]} for single input
        if data.get("embeddings"):
            return data["embeddings"][0]
        if "embedding" in data:
            return data["embedding"]
        raise ProviderError(f"Unexpected Ollama response format: {list(data)}")

    async def is_available(self) -> bool:
        try:
            await self.encode("test")
            return True
        except ProviderError:
            return False

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
