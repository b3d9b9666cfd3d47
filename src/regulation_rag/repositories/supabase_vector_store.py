"""Supabase (pgvector) implementation of VectorStore.

Similarity search runs server-side in a Postgres function exposed through
PostgREST:

    POST {SUPABASE_URL}/rest/v1/rpc/match_regulation_chunks
    {"query_embedding": [...], "match_threshold": 0.3, "match_count": 5}

Each returned row carries ``chunk`` (text) and ``similarity``; every other
column is kept as chunk metadata.
"""

import httpx

from regulation_rag.config import Settings, settings
from regulation_rag.entities import RetrievedChunk
from regulation_rag.errors import ProviderError


class SupabaseVectorStore:
    """Supabase RPC implementation of the VectorStore protocol.

    This class satisfies the VectorStore protocol through structural
    typing - no explicit inheritance needed.
    """

    def __init__(
        self,
        url: str | None = None,
        key: str | None = None,
        match_function: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the Supabase vector store.

        Args:
            url: Supabase project URL. Defaults to settings.supabase_url.
            key: Supabase API key. Defaults to settings.supabase_key.
            match_function: Name of the RPC function. Defaults to settings.
            timeout: Request timeout in seconds. Defaults to settings.http_timeout.
        """
        self._url = (url or settings.supabase_url or "").rstrip("/")
        self._key = key or settings.supabase_key
        self._match_function = match_function or settings.supabase_match_function
        self._timeout = timeout or settings.http_timeout
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def create(cls, config: Settings | None = None) -> "SupabaseVectorStore":
        """Factory method to create SupabaseVectorStore from settings."""
        config = config or settings
        return cls(
            url=config.supabase_url,
            key=config.supabase_key,
            match_function=config.supabase_match_function,
            timeout=config.http_timeout,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=f"{self._url}/rest/v1",
                timeout=self._timeout,
                headers={
                    "apikey": self._key or "",
                    "Authorization": f"Bearer {self._key}",
                    "Content-Type": "application/json",
                },
            )
        return self._client

    @property
    def is_configured(self) -> bool:
        return bool(self._url and self._key)

    async def search(
        self,
        vector: list[float],
        threshold: float,
        max_results: int,
    ) -> list[RetrievedChunk]:
        """Run the match RPC and convert rows to chunks.

        Raises:
            ProviderError: If the store is not configured, the RPC fails,
                or the response is not a list of rows
        """
        if not self.is_configured:
            raise ProviderError("SUPABASE_URL / SUPABASE_KEY are not set")

        payload = {
            "query_embedding": vector,
            "match_threshold": threshold,
            "match_count": max_results,
        }

        try:
            response = await self.client.post(f"/rpc/{self._match_function}", json=payload)
            response.raise_for_status()
            rows = response.json()
        except httpx.HTTPError as e:
            raise ProviderError(f"Supabase RPC error: {e}") from e

        if not isinstance(rows, list):
            raise ProviderError(f"Unexpected RPC response format: {rows}")

        chunks = []
        for row in rows:
            text = row.get("chunk") or row.get("content") or ""
            metadata = {k: v for k, v in row.items() if k not in ("chunk", "content", "similarity")}
            chunks.append(
                RetrievedChunk(
                    text=text,
                    similarity=float(row.get("similarity", 0.0)),
                    metadata=metadata,
                )
            )
        return chunks

    async def health_check(self) -> bool:
        if not self.is_configured:
            return False
        try:
            response = await self.client.get("/")
            return response.status_code < 500
        except httpx.HTTPError:
            return False

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
