"""Query service tests."""

from unittest.mock import MagicMock

import pytest
from opensearchpy.exceptions import ConnectionError as StoreConnectionError
from opensearchpy.exceptions import TransportError

from search_service.correlation import correlation_scope
from search_service.search.query import QueryService, build_query


def _hit(doc_id: str, title: str, score: float) -> dict:
    return {
        "_id": doc_id,
        "_score": score,
        "_source": {"id": doc_id, "ownerId": "u1", "title": title, "body": "text"},
    }


@pytest.fixture
def search_client() -> MagicMock:
    """Mock index client returning no hits by default."""
    client = MagicMock()
    client.search.return_value = {"hits": {"hits": []}}
    return client


@pytest.mark.parametrize("query", ["", "   ", "\t\n"])
def test_blank_query_short_circuits(search_client: MagicMock, query: str) -> None:
    """Blank queries return nothing without contacting the store."""
    service = QueryService(search_client, "documents")

    assert service.search(query) == []
    search_client.search.assert_not_called()


def test_query_weights_title_double_and_enables_fuzziness() -> None:
    """The request is a fuzzy multi_match with title boosted 2x."""
    body = build_query("concurrency", size=10)

    multi_match = body["query"]["multi_match"]
    assert multi_match["query"] == "concurrency"
    assert multi_match["fields"] == ["title^2", "body"]
    assert multi_match["fuzziness"] == "AUTO"
    assert body["size"] == 10


def test_search_preserves_store_ranking(search_client: MagicMock) -> None:
    """Documents come back in the order the store ranked them."""
    search_client.search.return_value = {
        "hits": {"hits": [_hit("p2", "best", 3.1), _hit("p1", "good", 1.2)]}
    }
    service = QueryService(search_client, "documents", size=5)

    results = service.search("concurrency")

    assert [d.id for d in results] == ["p2", "p1"]
    kwargs = search_client.search.call_args.kwargs
    assert kwargs["index"] == "documents"
    assert kwargs["body"]["size"] == 5


def test_search_forwards_correlation_id(search_client: MagicMock) -> None:
    """The current correlation id is sent to the store."""
    service = QueryService(search_client, "documents")

    with correlation_scope("corr-42"):
        service.search("concurrency")

    assert search_client.search.call_args.kwargs["headers"] == {"X-Opaque-Id": "corr-42"}


@pytest.mark.parametrize(
    "error",
    [
        TransportError(500, "search_phase_execution_exception", {}),
        StoreConnectionError("N/A", "connection refused", Exception("refused")),
    ],
)
def test_store_failure_degrades_to_empty(search_client: MagicMock, error: Exception) -> None:
    """Store errors on the read path return an empty result."""
    search_client.search.side_effect = error
    service = QueryService(search_client, "documents")

    assert service.search("concurrency") == []


def test_invalid_hits_are_skipped(search_client: MagicMock) -> None:
    """Hits whose source is not a valid document are dropped."""
    search_client.search.return_value = {
        "hits": {"hits": [{"_id": "bad", "_source": {"title": "no id"}}, _hit("p1", "ok", 1.0)]}
    }
    service = QueryService(search_client, "documents")

    assert [d.id for d in service.search("ok")] == ["p1"]
