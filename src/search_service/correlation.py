"""Correlation identifiers threaded through one unit of work."""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

import structlog

CORRELATION_HEADER = "X-Correlation-ID"

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def resolve_correlation_id(value: str | bytes | None) -> str:
    """Reuse an inbound correlation id or generate a fresh one.

    Args:
        value: Header or stream field value, possibly missing or blank.

    Returns:
        The trimmed inbound value, or a new UUID4 string.
    """
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    if value and value.strip():
        return value.strip()
    return str(uuid.uuid4())


def get_correlation_id() -> str | None:
    """Return the correlation id of the current unit of work, if any."""
    return _correlation_id.get()


@contextmanager
def correlation_scope(correlation_id: str) -> Iterator[str]:
    """Bind a correlation id for the duration of a unit of work.

    The id is visible through get_correlation_id() and added to every
    structlog line emitted inside the block.

    Args:
        correlation_id: Identifier for this request or message.

    Yields:
        The bound correlation id.
    """
    token = _correlation_id.set(correlation_id)
    try:
        with structlog.contextvars.bound_contextvars(correlation_id=correlation_id):
            yield correlation_id
    finally:
        _correlation_id.reset(token)
