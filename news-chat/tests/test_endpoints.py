#!/usr/bin/env python3
"""
Tests for the REST endpoints, with every backend replaced through dependency overrides.
"""
from contextlib import ExitStack
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

import apimain
from chat.prompt_assembler import PromptAssembler
from chat.query_orchestrator import QueryOrchestrator
from models.data_models import IngestionResult, RetrievedPassage
from models.errors import EmbeddingError, VectorIndexError
from services.dependencies import (
    get_embedding_client,
    get_generative_client,
    get_ingestion_service,
    get_orchestrator,
    get_session_store,
    get_vector_index,
)
from services.session_store import SessionStore
from fakes import FailingGenerator, RecordingGenerator, make_embedder, make_redis

PASSAGES = [
    RetrievedPassage(score=0.9, title="Rates held", content="The bank held rates.", url="https://example.com/rates", publish_date=""),
    RetrievedPassage(score=0.7, title="Storm", content="A storm hit.", url="https://example.com/storm", publish_date=""),
]


def _build(generator=None, redis=None, passages=PASSAGES):
    if redis is None:
        redis = make_redis()
    store = SessionStore(redis, ttl=3600, timeout=1)
    retriever = MagicMock()
    retriever.retrieve = AsyncMock(return_value=list(passages))
    generator = generator or RecordingGenerator(reply="The bank held rates. https://example.com/rates")
    orchestrator = QueryOrchestrator(store, retriever, generator, PromptAssembler())

    index = MagicMock()
    index.count = AsyncMock(return_value=42)
    ingestion = MagicMock()
    ingestion.prepare_index = AsyncMock()
    ingestion.ingest = AsyncMock(return_value=IngestionResult(count=7, sources_ok=["a"]))

    app = apimain.create_app(with_lifespan=False)
    app.dependency_overrides[get_session_store] = lambda: store
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_vector_index] = lambda: index
    app.dependency_overrides[get_embedding_client] = lambda: make_embedder()
    app.dependency_overrides[get_generative_client] = lambda: generator
    app.dependency_overrides[get_ingestion_service] = lambda: ingestion
    return TestClient(app), {"store": store, "redis": redis, "index": index, "ingestion": ingestion, "generator": generator}


@pytest.fixture
def build():
    """Factory for clients whose requests all run on one event loop, closed at teardown."""
    with ExitStack() as stack:
        def _make(**kwargs):
            test_client, deps = _build(**kwargs)
            return stack.enter_context(test_client), deps
        yield _make


@pytest.fixture
def client(build):
    test_client, _ = build()
    return test_client


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert "timestamp" in body


def test_root(client):
    assert client.get("/").status_code == 200


def test_create_session(client):
    first = client.post("/api/sessions").json()["sessionId"]
    second = client.post("/api/sessions").json()["sessionId"]
    assert first and second and first != second


def test_chat_round_trip_and_history(client):
    session_id = client.post("/api/sessions").json()["sessionId"]

    response = client.post("/api/chat", json={"sessionId": session_id, "message": "What did the bank do?"})

    assert response.status_code == 200
    body = response.json()
    assert body["response"].startswith("The bank held rates.")
    assert body["sources"] == [
        {"title": "Rates held", "url": "https://example.com/rates"},
        {"title": "Storm", "url": "https://example.com/storm"},
    ]

    history = client.get(f"/api/sessions/{session_id}/history").json()["history"]
    assert [t["role"] for t in history] == ["user", "assistant"]
    assert "sources" not in history[0]
    assert history[1]["sources"] == body["sources"]
    assert history[0]["timestamp"] <= history[1]["timestamp"]


def test_unknown_session_history_is_empty(client):
    response = client.get("/api/sessions/does-not-exist/history")
    assert response.status_code == 200
    assert response.json() == {"history": []}


def test_clear_session(client):
    client.post("/api/chat", json={"sessionId": "s1", "message": "hello"})

    assert client.delete("/api/sessions/s1").json() == {"success": True}
    assert client.get("/api/sessions/s1/history").json() == {"history": []}
    assert client.delete("/api/sessions/s1").json() == {"success": False}


@pytest.mark.parametrize("payload", [{}, {"sessionId": "s1"}, {"message": "hi"}, {"sessionId": "s1", "message": "  "}])
def test_chat_missing_fields_is_400(build, payload):
    test_client, _ = build()

    response = test_client.post("/api/chat", json=payload)

    assert response.status_code == 400
    assert test_client.get("/api/sessions/s1/history").json() == {"history": []}


def test_generation_failure_is_502_and_keeps_user_turn(build):
    test_client, _ = build(generator=FailingGenerator())

    response = test_client.post("/api/chat", json={"sessionId": "s1", "message": "hello"})

    assert response.status_code == 502
    assert response.json()["detail"] == "Failed to process query"
    history = test_client.get("/api/sessions/s1/history").json()["history"]
    assert [t["role"] for t in history] == ["user"]


def test_store_failure_is_503(build):
    test_client, _ = build(redis=make_redis(connected=False))

    assert test_client.post("/api/chat", json={"sessionId": "s1", "message": "hello"}).status_code == 503
    assert test_client.get("/api/sessions/s1/history").status_code == 503
    assert test_client.delete("/api/sessions/s1").status_code == 503


def test_status_reports_collection_count(build):
    test_client, _ = build()

    body = test_client.get("/api/status").json()

    assert body["status"] == "operational"
    assert body["collection_count"] == 42
    assert body["model_info"]["embeddings"]["dim"] == 16
    assert body["model_info"]["llm"]["provider"] == "recording"


def test_status_index_failure_is_502(build):
    test_client, deps = build()
    deps["index"].count.side_effect = VectorIndexError("down")

    assert test_client.get("/api/status").status_code == 502


def test_ingest(build):
    test_client, deps = build()

    response = test_client.post("/api/ingest")

    assert response.status_code == 200
    assert response.json() == {"count": 7, "message": "Successfully ingested 7 articles"}
    deps["ingestion"].prepare_index.assert_awaited_once()


@pytest.mark.parametrize("error", [EmbeddingError("embedding backend down"), VectorIndexError("upsert rejected")])
def test_ingest_provider_failure_is_502(build, error):
    test_client, deps = build()
    deps["ingestion"].ingest.side_effect = error

    response = test_client.post("/api/ingest")

    assert response.status_code == 502
    assert response.json()["detail"] == "Failed to ingest articles"
