"""Events subsystem: lifecycle event decoding and stream consumption."""
from search_service.events.consumer import ConsumerState, EventConsumer
from search_service.events.dead_letter import DeadLetterPublisher
from search_service.events.decoder import decode_event
from search_service.events.stream import create_redis_client, ensure_consumer_group
from search_service.events.types import (
    DocumentCreated,
    DocumentDeleted,
    DocumentUpdated,
    EventKind,
    LifecycleEvent,
    UnknownEvent,
)

__all__ = [
    "ConsumerState",
    "DeadLetterPublisher",
    "DocumentCreated",
    "DocumentDeleted",
    "DocumentUpdated",
    "EventConsumer",
    "EventKind",
    "LifecycleEvent",
    "UnknownEvent",
    "create_redis_client",
    "decode_event",
    "ensure_consumer_group",
]
