"""Repository layer for external collaborators.

This layer wraps external dependencies (OpenAI, Ollama, Supabase) behind
protocol-based interfaces. This enables:
- Easy swapping of implementations (Supabase → in-memory, OpenAI → Ollama, etc.)
- Unit testing with fake implementations
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from regulation_rag.protocols import CompletionProvider, EmbeddingProvider, VectorStore

from .memory_vector_store import InMemoryVectorStore
from .ollama_embedding_provider import OllamaEmbeddingProvider
from .openai_completion_provider import OpenAICompletionProvider
from .openai_embedding_provider import OpenAIEmbeddingProvider
from .supabase_vector_store import SupabaseVectorStore

__all__ = [
    "CompletionProvider",
    "EmbeddingProvider",
    "VectorStore",
    "InMemoryVectorStore",
    "OllamaEmbeddingProvider",
    "OpenAICompletionProvider",
    "OpenAIEmbeddingProvider",
    "SupabaseVectorStore",
]
