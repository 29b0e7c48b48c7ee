"""Idempotent document writes against the search index."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal

import structlog
from opensearchpy import OpenSearch
from opensearchpy.exceptions import (
    ConnectionError as StoreConnectionError,
    NotFoundError,
    OpenSearchException,
    TransportError,
)
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from search_service.correlation import get_correlation_id
from search_service.search.schemas import IndexedDocument, IndexOutcome

logger = structlog.get_logger()

TRANSIENT_STATUS_CODES: frozenset[int] = frozenset({429, 502, 503, 504})

_DONE_EVENTS: dict[str, str] = {
    "upsert": "search_document_upserted",
    "remove": "search_document_removed",
}


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff settings for index writes.

    Attributes:
        attempts: Total store calls per write, including the first.
        min_wait: Lower bound of the backoff in seconds.
        max_wait: Upper bound of the backoff in seconds.
    """

    attempts: int = 3
    min_wait: float = 1.0
    max_wait: float = 10.0


def is_transient(exc: BaseException) -> bool:
    """Decide whether a store error is worth retrying.

    Connection failures and timeouts are transient, as are throttling and
    gateway errors. Any other response from the store is final.
    """
    if isinstance(exc, StoreConnectionError):
        return True
    if isinstance(exc, TransportError):
        return exc.status_code in TRANSIENT_STATUS_CODES
    return False


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "search_write_retry",
        attempt=retry_state.attempt_number,
        error=str(exc),
        wait_seconds=round(retry_state.next_action.sleep, 2)
        if retry_state.next_action
        else None,
    )


class DocumentIndexer:
    """Writes and removes single documents keyed by document id.

    Writes wait for the index refresh so a query issued after a write
    returns observes it. Failures never raise; each call reports an
    IndexOutcome instead.
    """

    def __init__(
        self,
        client: OpenSearch,
        index_name: str,
        retry: RetryPolicy | None = None,
    ) -> None:
        """Initialize indexer.

        Args:
            client: Index store client.
            index_name: Target index.
            retry: Backoff policy for transient failures.
        """
        self._client = client
        self._index = index_name
        self._retry = retry or RetryPolicy()

    def upsert(self, doc: IndexedDocument) -> IndexOutcome:
        """Insert or fully replace the document stored under doc.id.

        Args:
            doc: Document to write.

        Returns:
            Outcome of the write.
        """
        logger.info("search_document_upserting", document_id=doc.id, index=self._index)
        return self._write(
            "upsert",
            doc.id,
            lambda headers: self._client.index(
                index=self._index,
                id=doc.id,
                body=doc.to_source(),
                refresh="wait_for",
                headers=headers,
            ),
        )

    def remove(self, document_id: str) -> IndexOutcome:
        """Delete the document stored under document_id.

        A document that is already absent counts as removed.

        Args:
            document_id: Identifier of the document to delete.

        Returns:
            Outcome of the delete.
        """
        logger.info("search_document_removing", document_id=document_id, index=self._index)
        return self._write(
            "remove",
            document_id,
            lambda headers: self._client.delete(
                index=self._index,
                id=document_id,
                refresh="wait_for",
                headers=headers,
            ),
        )

    def _write(
        self,
        operation: Literal["upsert", "remove"],
        document_id: str,
        call: Callable[[dict[str, str]], Any],
    ) -> IndexOutcome:
        headers = self._request_headers()
        attempts = 0
        retrying = Retrying(
            stop=stop_after_attempt(self._retry.attempts),
            wait=wait_exponential(
                multiplier=1,
                min=self._retry.min_wait,
                max=self._retry.max_wait,
            ),
            retry=retry_if_exception(is_transient),
            before_sleep=_log_retry,
            reraise=True,
        )

        try:
            for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    call(headers)
        except NotFoundError:
            if operation == "remove":
                logger.warning("search_document_not_found", document_id=document_id)
                return IndexOutcome(
                    document_id=document_id,
                    operation=operation,
                    succeeded=True,
                    attempts=attempts,
                )
            return self._failed(operation, document_id, attempts, "index not found")
        except OpenSearchException as e:
            return self._failed(operation, document_id, attempts, str(e))

        logger.info(
            _DONE_EVENTS[operation],
            document_id=document_id,
            attempts=attempts,
        )
        return IndexOutcome(
            document_id=document_id,
            operation=operation,
            succeeded=True,
            attempts=attempts,
        )

    def _failed(
        self,
        operation: Literal["upsert", "remove"],
        document_id: str,
        attempts: int,
        error: str,
    ) -> IndexOutcome:
        logger.error(
            "search_write_failed",
            operation=operation,
            document_id=document_id,
            index=self._index,
            attempts=attempts,
            error=error,
            exc_info=True,
        )
        return IndexOutcome(
            document_id=document_id,
            operation=operation,
            succeeded=False,
            attempts=attempts,
            error=error,
        )

    @staticmethod
    def _request_headers() -> dict[str, str]:
        correlation_id = get_correlation_id()
        if correlation_id is None:
            return {}
        return {"X-Opaque-Id": correlation_id}
