"""Decoding of raw stream payloads into typed lifecycle events."""

import json
from datetime import datetime
from typing import Any

from pydantic import TypeAdapter, ValidationError

from search_service.errors import MalformedEventError
from search_service.events.types import (
    DocumentCreated,
    DocumentDeleted,
    DocumentUpdated,
    EventKind,
    LifecycleEvent,
    UnknownEvent,
)
from search_service.search.schemas import IndexedDocument

_timestamp_adapter: TypeAdapter[datetime | None] = TypeAdapter(datetime | None)


def _required_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise MalformedEventError(f"missing_{key}", f"Event has no usable '{key}'")
    return value.strip()


def decode_event(raw: str | bytes) -> LifecycleEvent:
    """Transform a raw JSON payload into a typed lifecycle event.

    The payload is a flat object: ``id``, ``kind`` and ``eventTimestamp``
    next to the document fields for Created and Updated events.

    Args:
        raw: JSON text as read from the stream.

    Returns:
        The decoded event; UnknownEvent for kinds this service does not know.

    Raises:
        MalformedEventError: If the payload is not JSON, lacks id or kind,
            or embeds an invalid document.
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedEventError("invalid_json", str(e)) from e

    if not isinstance(data, dict):
        raise MalformedEventError("not_an_object", "Event payload must be a JSON object")

    event_id = _required_str(data, "id")
    kind = _required_str(data, "kind")

    try:
        timestamp = _timestamp_adapter.validate_python(data.get("eventTimestamp"))
    except ValidationError as e:
        raise MalformedEventError("invalid_timestamp", str(e)) from e

    if kind == EventKind.DELETED.value:
        return DocumentDeleted(id=event_id, timestamp=timestamp)

    if kind not in (EventKind.CREATED.value, EventKind.UPDATED.value):
        return UnknownEvent(id=event_id, timestamp=timestamp, kind=kind)

    try:
        document = IndexedDocument.model_validate({**data, "id": event_id})
    except ValidationError as e:
        raise MalformedEventError("invalid_document", str(e)) from e

    if kind == EventKind.CREATED.value:
        return DocumentCreated(id=event_id, timestamp=timestamp, document=document)
    return DocumentUpdated(id=event_id, timestamp=timestamp, document=document)
