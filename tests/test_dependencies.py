"""
Tests for building the production service container from settings.
"""

import json

from regulation_rag.api.dependencies import build_container
from regulation_rag.config import Settings
from regulation_rag.repositories import (
    InMemoryVectorStore,
    OllamaEmbeddingProvider,
    OpenAIEmbeddingProvider,
    SupabaseVectorStore,
)


def make_settings(**overrides) -> Settings:
    values = {
        "openai_api_key": "sk-test",
        "embedding_model": None,
        "vector_backend": "supabase",
        "vector_seed_file": None,
        "supabase_url": "https://example.supabase.co",
        "supabase_key": "service-key",
    }
    values.update(overrides)
    return Settings(**values)


def test_openai_backend_uses_ada_by_default():
    container = build_container(make_settings(embedding_backend="openai"))

    assert isinstance(container.embedding_provider, OpenAIEmbeddingProvider)
    assert container.embedding_provider.model_name == "text-embedding-ada-002"
    assert container.retrieval is not None


def test_ollama_backend_uses_its_own_default_model():
    container = build_container(make_settings(embedding_backend="ollama"))

    assert isinstance(container.embedding_provider, OllamaEmbeddingProvider)
    assert container.embedding_provider.model_name == "nomic-embed-text"


def test_explicit_embedding_model_wins():
    container = build_container(make_settings(embedding_backend="ollama", embedding_model="mxbai-embed-large"))
    assert container.embedding_provider.model_name == "mxbai-embed-large"


def test_supabase_store_reads_given_settings():
    container = build_container(make_settings(supabase_url="https://other.supabase.co"))

    assert isinstance(container.vector_store, SupabaseVectorStore)
    assert container.vector_store.is_configured


def test_retrieval_disabled_without_supabase_credentials():
    container = build_container(make_settings(supabase_url=None, supabase_key=None))

    assert container.retrieval is None
    assert container.vector_store is None
    assert container.orchestrator.rag_available is False


def test_memory_backend_is_seeded_from_file(tmp_path):
    seed = tmp_path / "chunks.json"
    seed.write_text(
        json.dumps(
            [
                {"text": "一 管理費 ... をいう。", "embedding": [1.0, 0.0], "metadata": {"article": 2}},
                {"chunk": "第25条 ...", "embedding": [0.0, 1.0]},
            ],
            ensure_ascii=False,
        ),
        encoding="utf-8",
    )

    container = build_container(
        make_settings(vector_backend="memory", vector_seed_file=str(seed), supabase_url=None, supabase_key=None)
    )

    assert isinstance(container.vector_store, InMemoryVectorStore)
    assert len(container.vector_store) == 2
    assert container.retrieval is not None


def test_memory_backend_without_seed_is_empty():
    container = build_container(make_settings(vector_backend="memory"))

    assert isinstance(container.vector_store, InMemoryVectorStore)
    assert len(container.vector_store) == 0
