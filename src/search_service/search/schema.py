"""Search index schema management."""

from typing import Any

import structlog
from opensearchpy import OpenSearch
from opensearchpy.exceptions import OpenSearchException, RequestError

from search_service.errors import SchemaError

logger = structlog.get_logger()

INDEX_MAPPING: dict[str, Any] = {
    "properties": {
        "id": {"type": "keyword"},
        "ownerId": {"type": "keyword"},
        "title": {"type": "text", "analyzer": "english"},
        "body": {"type": "text", "analyzer": "english"},
        "createdAt": {"type": "date"},
        "updatedAt": {"type": "date"},
        "popularityScore": {"type": "integer"},
    }
}


class SchemaManager:
    """Ensures the search index exists with the expected field mapping."""

    def __init__(self, client: OpenSearch, index_name: str) -> None:
        """Initialize schema manager.

        Args:
            client: Index store client.
            index_name: Name of the index to manage.
        """
        self._client = client
        self._index = index_name

    def ensure_schema(self) -> bool:
        """Create the index with its mapping unless it already exists.

        Safe to call repeatedly. Losing a creation race to another
        instance counts as success.

        Returns:
            True if the index was created by this call, False if it existed.

        Raises:
            SchemaError: If existence cannot be checked or creation fails.
        """
        try:
            if self._client.indices.exists(index=self._index):
                logger.info("search_index_present", index=self._index)
                return False

            logger.info("search_index_creating", index=self._index)
            self._client.indices.create(
                index=self._index,
                body={"mappings": INDEX_MAPPING},
            )
        except RequestError as e:
            if e.error == "resource_already_exists_exception":
                logger.info("search_index_present", index=self._index)
                return False
            logger.error(
                "search_index_create_failed",
                index=self._index,
                error=str(e),
                exc_info=True,
            )
            raise SchemaError(f"Cannot create index {self._index}", self._index) from e
        except OpenSearchException as e:
            logger.error(
                "search_index_create_failed",
                index=self._index,
                error=str(e),
                exc_info=True,
            )
            raise SchemaError(f"Cannot prepare index {self._index}", self._index) from e

        logger.info("search_index_created", index=self._index)
        return True
