"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (Supabase → in-memory, OpenAI → Ollama, etc.)
- Unit testing with fake implementations
- Clear separation of concerns

Usage:
    ```python
    from regulation_rag.protocols import EmbeddingProvider, VectorStore

    # Type hints work with any implementation
    store: VectorStore = SupabaseVectorStore.create()   # works
    store: VectorStore = InMemoryVectorStore()          # also works
    ```
"""

from .completion_provider import ChatMessageDict, CompletionProvider
from .embedding_provider import EmbeddingProvider
from .vector_store import VectorStore

__all__ = [
    "ChatMessageDict",
    "CompletionProvider",
    "EmbeddingProvider",
    "VectorStore",
]
