"""Application lifespan tests."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from opensearchpy.exceptions import ConnectionError as StoreConnectionError

from search_service import app as app_module
from search_service.app import create_app
from search_service.config import Settings
from search_service.errors import SchemaError
from search_service.events.consumer import EventConsumer


@pytest.fixture
def search_client() -> MagicMock:
    """Index store client double with an existing index."""
    client = MagicMock()
    client.indices.exists.return_value = True
    client.ping.return_value = True
    return client


@pytest.fixture
def patched_clients(
    monkeypatch: pytest.MonkeyPatch, search_client: MagicMock, redis_client: AsyncMock
) -> None:
    """Make the lifespan build the test doubles instead of real clients."""
    monkeypatch.setattr(app_module, "create_search_client", lambda settings: search_client)
    monkeypatch.setattr(app_module, "create_redis_client", lambda url: redis_client)


@pytest.mark.usefixtures("patched_clients")
def test_schema_failure_aborts_startup(
    settings: Settings, search_client: MagicMock, redis_client: AsyncMock
) -> None:
    """An unreachable index store stops startup before the consumer subscribes."""
    search_client.indices.exists.side_effect = StoreConnectionError("N/A", "refused", Exception())

    with pytest.raises(SchemaError):
        with TestClient(create_app(settings)):
            pass

    redis_client.xgroup_create.assert_not_awaited()
    redis_client.xreadgroup.assert_not_awaited()
    redis_client.aclose.assert_awaited_once()
    search_client.close.assert_called_once()


@pytest.mark.usefixtures("patched_clients")
def test_startup_subscribes_and_shutdown_closes_clients(
    settings: Settings, search_client: MagicMock, redis_client: AsyncMock
) -> None:
    """A healthy startup joins the group; shutdown drains and closes both clients."""

    async def idle_read(**kwargs: object) -> list:
        await asyncio.sleep(0.01)
        return []

    redis_client.xreadgroup.side_effect = idle_read
    app = create_app(settings)

    with TestClient(app) as client:
        assert isinstance(app.state.consumer, EventConsumer)
        assert client.get("/health/ready").status_code == 200

    redis_client.xgroup_create.assert_awaited_once()
    search_client.indices.create.assert_not_called()
    redis_client.aclose.assert_awaited_once()
    search_client.close.assert_called_once()
