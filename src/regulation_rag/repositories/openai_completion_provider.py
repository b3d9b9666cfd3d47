"""OpenAI chat completion provider (REST API over httpx)."""

import httpx

from regulation_rag.config import settings
from regulation_rag.errors import ProviderError
from regulation_rag.protocols import ChatMessageDict


class OpenAICompletionProvider:
    """OpenAI implementation of CompletionProvider protocol.

    Calls ``POST {base_url}/chat/completions`` and returns the content of
    the first choice. Timeouts are enforced by callers with
    ``asyncio.wait_for``; the client timeout is only an outer bound.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the completion provider.

        Args:
            api_key: OpenAI API key. Defaults to settings.openai_api_key.
            model_name: Chat model. Defaults to settings.completion_model.
            base_url: API base URL. Defaults to settings.openai_base_url.
            timeout: Request timeout in seconds. Defaults to settings.http_timeout.
        """
        self._api_key = api_key or settings.openai_api_key
        self._model_name = model_name or settings.completion_model
        self._base_url = (base_url or settings.openai_base_url).rstrip("/")
        self._timeout = timeout or settings.http_timeout
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def create(cls, model_name: str | None = None) -> "OpenAICompletionProvider":
        """Factory method to create OpenAICompletionProvider with defaults."""
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
    def model_name(self) -> str:
        return self._model_name

    async def complete(
        self,
        messages: list[ChatMessageDict],
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Generate an assistant reply.

        Raises:
            ProviderError: If the key is missing, the request fails, or the
                response has no message content
        """
        if not self._api_key:
            raise ProviderError("OPENAI_API_KEY is not set")

        payload = {
            "model": self._model_name,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        try:
            response = await self.client.post("/chat/completions", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            # Surface the API's own error message when present
            detail = e.response.text
            try:
                detail = e.response.json()["error"]["message"]
            except (ValueError, KeyError, TypeError):
                pass
            raise ProviderError(detail) from e
        except httpx.HTTPError as e:
            raise ProviderError(f"OpenAI chat completion error: {e}") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(f"Unexpected completion response format: {data}") from e

        if not content:
            raise ProviderError("Completion returned empty content")
        return content

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
