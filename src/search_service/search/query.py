"""Ranked full-text queries against the search index."""

from typing import Any

import structlog
from opensearchpy import OpenSearch
from opensearchpy.exceptions import OpenSearchException
from pydantic import ValidationError

from search_service.correlation import get_correlation_id
from search_service.search.schemas import IndexedDocument

logger = structlog.get_logger()

TITLE_BOOST = 2

SEARCH_FIELDS: tuple[str, ...] = (f"title^{TITLE_BOOST}", "body")


def build_query(query: str, size: int) -> dict[str, Any]:
    """Build the request body for a boosted multi-field fuzzy match.

    Args:
        query: Non-blank user query.
        size: Maximum number of hits.

    Returns:
        Search request body.
    """
    return {
        "size": size,
        "query": {
            "multi_match": {
                "query": query,
                "fields": list(SEARCH_FIELDS),
                "fuzziness": "AUTO",
            }
        },
    }


class QueryService:
    """Executes ranked searches and shapes hits into documents.

    Read failures degrade to an empty result rather than raising.
    """

    def __init__(self, client: OpenSearch, index_name: str, size: int = 10) -> None:
        """Initialize query service.

        Args:
            client: Index store client.
            index_name: Index to query.
            size: Maximum number of documents per search.
        """
        self._client = client
        self._index = index_name
        self._size = size

    def search(self, query: str) -> list[IndexedDocument]:
        """Search title and body, title matches weighted double.

        Args:
            query: Raw user query.

        Returns:
            Documents in descending relevance order; empty for a blank query
            or when the store fails.
        """
        if not query or not query.strip():
            logger.warning("search_query_empty")
            return []

        logger.info("search_query_started", query=query, index=self._index)
        correlation_id = get_correlation_id()
        headers = {"X-Opaque-Id": correlation_id} if correlation_id else {}

        try:
            response = self._client.search(
                index=self._index,
                body=build_query(query, self._size),
                headers=headers,
            )
        except OpenSearchException as e:
            logger.error(
                "search_query_failed",
                query=query,
                error=str(e),
                exc_info=True,
            )
            return []

        documents: list[IndexedDocument] = []
        for hit in response.get("hits", {}).get("hits", []):
            try:
                documents.append(IndexedDocument.model_validate(hit.get("_source", {})))
            except ValidationError:
                logger.warning("search_hit_invalid", document_id=hit.get("_id"))

        logger.info("search_query_completed", query=query, count=len(documents))
        return documents
