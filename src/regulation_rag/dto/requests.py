"""Request DTOs for API endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """A single conversation turn."""

    role: str = Field(..., description="Author of the turn, usually user or assistant")
    content: str = Field(..., description="Message text")


class ChatRequest(BaseModel):
    """Request DTO for POST /chat.

    Accepts the client's camelCase ``ragEnabled`` as well as ``rag_enabled``.
    """

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage] = Field(
        ...,
        description="Conversation so far, oldest first; the last user turn is the question",
        min_length=1,
    )
    rag_enabled: bool = Field(
        True,
        alias="ragEnabled",
        description="Ground the answer in retrieved regulation text",
    )


class SearchRequest(BaseModel):
    """Request DTO for POST /search."""

    query: str = Field(..., description="Search text", min_length=1)
    k: int = Field(3, description="Number of ranked chunks to return", ge=1, le=10)
