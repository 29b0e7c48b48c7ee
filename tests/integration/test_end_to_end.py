"""End-to-end indexing and search against real OpenSearch and Redis.

Set SEARCH_INTEGRATION_OPENSEARCH_URL and SEARCH_INTEGRATION_REDIS_URL to run.
"""

import json
import os
import time
import uuid
from collections.abc import Iterator

import pytest
import redis
from fastapi.testclient import TestClient
from opensearchpy import OpenSearch

from search_service.app import create_app
from search_service.config import Settings
from search_service.correlation import CORRELATION_HEADER

OPENSEARCH_URL = os.getenv("SEARCH_INTEGRATION_OPENSEARCH_URL")
REDIS_URL = os.getenv("SEARCH_INTEGRATION_REDIS_URL")

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        not (OPENSEARCH_URL and REDIS_URL),
        reason="integration services not configured",
    ),
]


@pytest.fixture
def integration_settings() -> Settings:
    """Settings with an isolated index and stream per test run."""
    suffix = uuid.uuid4().hex[:8]
    return Settings(
        _env_file=None,
        opensearch_url=OPENSEARCH_URL,
        redis_url=REDIS_URL,
        index_name=f"documents-it-{suffix}",
        stream_names_raw=f"document_events-it-{suffix}",
        dead_letter_stream=f"document_events-it-{suffix}:dlq",
        consumer_group=f"search-it-{suffix}",
        read_block_ms=200,
        index_retry_min_wait=0,
        index_retry_max_wait=0,
    )


@pytest.fixture
def live_client(integration_settings: Settings) -> Iterator[TestClient]:
    """Run the full app lifespan against the configured services."""
    app = create_app(integration_settings)
    with TestClient(app) as client:
        yield client

    OpenSearch(hosts=[OPENSEARCH_URL]).indices.delete(
        index=integration_settings.index_name,
        ignore_unavailable=True,
    )
    broker = redis.Redis.from_url(REDIS_URL)
    broker.delete(*integration_settings.stream_names, integration_settings.dead_letter_stream)
    broker.close()


def _publish(settings: Settings, event: dict, correlation_id: str) -> None:
    broker = redis.Redis.from_url(REDIS_URL)
    broker.xadd(
        settings.stream_names[0],
        {"payload": json.dumps(event), "correlation_id": correlation_id},
    )
    broker.close()


def _search_ids(client: TestClient, query: str) -> list[str]:
    response = client.get("/search", params={"q": query})
    assert response.status_code == 200
    return [doc["id"] for doc in response.json()]


def _wait_for(client: TestClient, query: str, doc_id: str, timeout: float = 15.0) -> list[str]:
    deadline = time.monotonic() + timeout
    ids: list[str] = []
    while time.monotonic() < deadline:
        ids = _search_ids(client, query)
        if doc_id in ids:
            return ids
        time.sleep(0.2)
    return ids


def test_created_event_becomes_searchable(
    live_client: TestClient, integration_settings: Settings
) -> None:
    """A published Created event is found by exact and misspelled queries only."""
    _publish(
        integration_settings,
        {
            "id": "p1",
            "kind": "Created",
            "ownerId": "u1",
            "title": "Go concurrency",
            "body": "goroutines and channels",
        },
        correlation_id="it-create",
    )

    assert "p1" in _wait_for(live_client, "concurrency", "p1")
    assert "p1" in _search_ids(live_client, "concurrancy")
    assert _search_ids(live_client, "u1") == []


def test_deleted_event_removes_document(
    live_client: TestClient, integration_settings: Settings
) -> None:
    """A Deleted event removes a previously indexed document."""
    _publish(
        integration_settings,
        {"id": "p2", "kind": "Created", "ownerId": "u2", "title": "Rust ownership", "body": "borrowing"},
        correlation_id="it-delete-1",
    )
    assert "p2" in _wait_for(live_client, "ownership", "p2")

    _publish(integration_settings, {"id": "p2", "kind": "Deleted"}, correlation_id="it-delete-2")

    deadline = time.monotonic() + 15.0
    while "p2" in _search_ids(live_client, "ownership") and time.monotonic() < deadline:
        time.sleep(0.2)
    assert "p2" not in _search_ids(live_client, "ownership")


def test_missing_query_reports_correlation_id(live_client: TestClient) -> None:
    """Missing q answers 400 echoing the inbound correlation id."""
    response = live_client.get("/search", headers={CORRELATION_HEADER: "it-400"})

    assert response.status_code == 400
    assert response.json()["correlationId"] == "it-400"
