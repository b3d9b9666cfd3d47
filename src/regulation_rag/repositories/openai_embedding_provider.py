"""OpenAI embedding provider (REST API over httpx)."""

import httpx

from regulation_rag.config import settings
from regulation_rag.errors import ProviderError


class OpenAIEmbeddingProvider:
    """OpenAI implementation of EmbeddingProvider protocol.

    Calls ``POST {base_url}/embeddings``. Default model:
    text-embedding-ada-002 (1536 dimensions), matching the vectors stored
    in the regulation chunk table.
    """

    MODEL_DIMENSIONS = {
        "text-embedding-ada-002": 1536,
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
    }

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the OpenAI embedding provider.

        Args:
            api_key: OpenAI API key. Defaults to settings.openai_api_key.
            model_name: Embedding model. Defaults to settings.embedding_model,
                then text-embedding-ada-002.
            base_url: API base URL. Defaults to settings.openai_base_url.
            timeout: Request timeout in seconds. Defaults to settings.http_timeout.
        """
        self._api_key = api_key or settings.openai_api_key
        self._model_name = model_name or settings.embedding_model or "text-embedding-ada-002"
        self._base_url = (base_url or settings.openai_base_url).rstrip("/")
        self._timeout = timeout or settings.http_timeout
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def create(cls, model_name: str | None = None) -> "OpenAIEmbeddingProvider":
        """Factory method to create OpenAIEmbeddingProvider with defaults."""
        return cls(model_name=model_name)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers={"Authorization": f"Bearer {self._api_key}"},
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    @property
    def dimension(self) -> int:
        return self.MODEL_DIMENSIONS.get(self._model_name, 1536)

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
            ProviderError: If the key is missing, the request fails or the
                payload is malformed
        """
        if not self._api_key:
            raise ProviderError("OPENAI_API_KEY is not set")

        try:
            response = await self.client.post(
                "/embeddings",
                json={"model": self._model_name, "input": text},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise ProviderError(f"OpenAI embeddings error: {e}") from e

        try:
            return data["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(f"Unexpected embeddings response format: {data}") from e

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
