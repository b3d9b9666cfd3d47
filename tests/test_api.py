"""
Tests for the regulation RAG API.
"""

import pytest
from conftest import DEFINITION_CHUNK, UNMARKED_CHUNK, FakeCompletionProvider, FakeEmbeddingProvider, FakeVectorStore
from fastapi.testclient import TestClient

from regulation_rag.api.app import create_app
from regulation_rag.api.dependencies import ServiceContainer


@pytest.fixture
def completion():
    return FakeCompletionProvider()


@pytest.fixture
def container(completion, test_settings):
    return ServiceContainer.assemble(
        completion=completion,
        embedding_provider=FakeEmbeddingProvider(),
        vector_store=FakeVectorStore([DEFINITION_CHUNK, UNMARKED_CHUNK]),
        config=test_settings,
    )


@pytest.fixture
def client(container):
    """Create a test client with the lifespan running."""
    with TestClient(create_app(container)) as test_client:
        yield test_client


def test_root(client):
    """Test root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Regulation RAG API"
    assert "chat" in data["endpoints"]


def test_health(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["rag_available"] is True
    assert data["cleanup_running"] is True
    assert data["completion_model"] == "fake-chat"


def test_chat(client, completion):
    """Test a full chat round trip."""
    response = client.post(
        "/chat",
        json={"messages": [{"role": "user", "content": "管理費とは"}], "ragEnabled": True},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["content"] == completion.enhanced
    assert data["cached"] is False
    assert data["diagnostics"]["states"][-1] == "finalize"


def test_chat_second_request_cached(client):
    """Test that an identical request is answered from the cache."""
    body = {"messages": [{"role": "user", "content": "管理費とは"}]}
    first = client.post("/chat", json=body).json()
    second = client.post("/chat", json=body).json()

    assert first["cached"] is False
    assert second["cached"] is True
    assert second["content"] == first["content"]


def test_chat_accepts_snake_case_flag(client, completion):
    response = client.post(
        "/chat",
        json={"messages": [{"role": "user", "content": "管理費とは"}], "rag_enabled": False},
    )
    assert response.status_code == 200
    assert response.json()["content"] == completion.draft


def test_chat_passes_through_other_roles(client, completion):
    response = client.post(
        "/chat",
        json={"messages": [{"role": "developer", "content": "敬語で"}, {"role": "user", "content": "管理費とは"}]},
    )
    assert response.status_code == 200
    draft_call = next(c for c in completion.calls if c["temperature"] == 0.8)
    assert draft_call["messages"][1] == {"role": "developer", "content": "敬語で"}


@pytest.mark.parametrize(
    "body",
    [{}, {"messages": "管理費とは"}, {"messages": []}],
    ids=["missing", "not-a-list", "empty"],
)
def test_chat_rejects_invalid_messages(client, completion, body):
    """Test 400 before any provider call."""
    response = client.post("/chat", json=body)
    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "メッセージが必要です"
    assert "details" in data
    assert completion.calls == []


def test_chat_draft_failure(client, completion):
    """Test 500 with error details when the draft fails."""
    completion.fail_draft = True
    response = client.post("/chat", json={"messages": [{"role": "user", "content": "管理費とは"}]})

    assert response.status_code == 500
    assert response.json() == {"error": "AI応答エラー", "details": "Incorrect API key provided"}


def test_search(client):
    """Test ranked search without generation."""
    response = client.post("/search", json={"query": "管理費とは", "k": 2})
    assert response.status_code == 200
    data = response.json()
    assert data["query"] == "管理費とは"
    assert len(data["results"]) == 2
    assert data["results"][0]["labels"] == ["定義文"]
    assert data["results"][0]["score"] > data["results"][1]["score"]


def test_search_without_retrieval(completion, test_settings):
    container = ServiceContainer.assemble(completion=completion, config=test_settings)
    with TestClient(create_app(container)) as client:
        response = client.post("/search", json={"query": "管理費とは"})
    assert response.status_code == 503


def test_cache_stats(client):
    client.post("/chat", json={"messages": [{"role": "user", "content": "管理費とは"}]})
    response = client.get("/cache/stats")

    assert response.status_code == 200
    data = response.json()
    assert data["response"]["total_entries"] == 1
    assert data["embedding"]["total_entries"] == 1
    assert data["settings"]["fuzzy_threshold"] == 0.6


def test_cache_popular(client):
    body = {"messages": [{"role": "user", "content": "管理費とは"}]}
    client.post("/chat", json=body)
    client.post("/chat", json=body)

    response = client.get("/cache/popular", params={"limit": 1})
    assert response.status_code == 200
    assert response.json()[0]["key"] == "rag:管理費とは"
    assert response.json()[0]["hit_count"] == 1


def test_cache_cleanup(client):
    response = client.post("/cache/cleanup")
    assert response.status_code == 200
    assert response.json()["removed"] == {"response": 0, "embedding": 0}


def test_clear_cache(client):
    body = {"messages": [{"role": "user", "content": "管理費とは"}]}
    client.post("/chat", json=body)

    assert client.delete("/cache").status_code == 200
    assert client.post("/chat", json=body).json()["cached"] is False
