"""Chat completion provider protocol."""

from typing import Protocol, TypedDict, runtime_checkable


class ChatMessageDict(TypedDict):
    role: str
    content: str


@runtime_checkable
class CompletionProvider(Protocol):
    """Protocol for chat completion services (OpenAI-compatible)."""

    @property
    def model_name(self) -> str:
        """Return the name/identifier of the model."""
        ...

    async def complete(
        self,
        messages: list[ChatMessageDict],
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Generate an assistant reply.

        Args:
            messages: Ordered conversation, system prompt first
            max_tokens: Upper bound on generated tokens
            temperature: Sampling temperature

        Returns:
            The assistant message content

        Raises:
            ProviderError: If the request fails or the reply is malformed
        """
        ...
