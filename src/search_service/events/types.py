"""Lifecycle event types consumed from the document stream."""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from search_service.search.schemas import IndexedDocument

PAYLOAD_FIELD = "payload"
CORRELATION_FIELD = "correlation_id"


class EventKind(str, Enum):
    """Kinds of lifecycle events emitted by the content producer."""

    CREATED = "Created"
    UPDATED = "Updated"
    DELETED = "Deleted"


class DocumentCreated(BaseModel):
    """A document was created upstream.

    Attributes:
        id: Identifier of the document.
        timestamp: When the producer emitted the event.
        document: Full document state to index.
    """

    id: str
    timestamp: datetime | None = Field(default=None, description="Event timestamp")
    document: IndexedDocument


class DocumentUpdated(BaseModel):
    """A document was changed upstream; carries its full new state."""

    id: str
    timestamp: datetime | None = Field(default=None, description="Event timestamp")
    document: IndexedDocument


class DocumentDeleted(BaseModel):
    """A document was deleted upstream."""

    id: str
    timestamp: datetime | None = Field(default=None, description="Event timestamp")


class UnknownEvent(BaseModel):
    """Well-formed event whose kind this service does not handle."""

    id: str
    timestamp: datetime | None = Field(default=None, description="Event timestamp")
    kind: str


LifecycleEvent = DocumentCreated | DocumentUpdated | DocumentDeleted | UnknownEvent
