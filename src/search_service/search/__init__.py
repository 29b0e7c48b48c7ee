"""Search index subsystem: schema, writes and ranked queries."""

from search_service.search.client import create_search_client
from search_service.search.indexer import DocumentIndexer, RetryPolicy
from search_service.search.query import QueryService
from search_service.search.schema import SchemaManager
from search_service.search.schemas import ErrorResponse, IndexedDocument, IndexOutcome

__all__ = [
    "DocumentIndexer",
    "ErrorResponse",
    "IndexOutcome",
    "IndexedDocument",
    "QueryService",
    "RetryPolicy",
    "SchemaManager",
    "create_search_client",
]
