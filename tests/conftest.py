"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from opensearchpy.exceptions import NotFoundError

from search_service.app import create_app
from search_service.config import Settings
from search_service.search.query import QueryService


class InMemoryIndexStore:
    """Minimal stand-in for the index client's write API, keyed by id."""

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, Any]] = {}

    def index(self, *, index: str, id: str, body: dict[str, Any], **_: Any) -> dict[str, Any]:
        result = "updated" if id in self.documents else "created"
        self.documents[id] = dict(body)
        return {"_id": id, "result": result}

    def delete(self, *, index: str, id: str, **_: Any) -> dict[str, Any]:
        if id not in self.documents:
            raise NotFoundError(404, "not_found", {"_id": id, "result": "not_found"})
        del self.documents[id]
        return {"_id": id, "result": "deleted"}


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        host="127.0.0.1",
        port=3003,
        debug=True,
        index_name="documents-test",
    )


@pytest.fixture
def query_service() -> MagicMock:
    """Query service double installed on the app state."""
    service = MagicMock(spec=QueryService)
    service.search.return_value = []
    return service


@pytest.fixture
def app(settings: Settings, query_service: MagicMock) -> FastAPI:
    """Create app without running the lifespan (no external services)."""
    application = create_app(settings)
    application.state.query_service = query_service
    return application


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client with configured app."""
    return TestClient(app)


@pytest.fixture
def store() -> InMemoryIndexStore:
    """In-memory index store for write semantics."""
    return InMemoryIndexStore()


@pytest.fixture
def redis_client() -> AsyncMock:
    """Mock Redis client for stream operations."""
    client = AsyncMock()
    client.ping = AsyncMock(return_value=True)
    client.xgroup_create = AsyncMock(return_value=True)
    client.xreadgroup = AsyncMock(return_value=[])
    client.xack = AsyncMock(return_value=1)
    client.xadd = AsyncMock(return_value="1-0")
    client.aclose = AsyncMock(return_value=None)
    return client
