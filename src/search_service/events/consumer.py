"""Stream consumer keeping the search index in sync with lifecycle events."""

from __future__ import annotations

import asyncio
import contextlib
from enum import Enum
from typing import Any, assert_never

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from search_service.correlation import correlation_scope, resolve_correlation_id
from search_service.errors import ConsumerStartupError, MalformedEventError
from search_service.events.dead_letter import DeadLetterPublisher
from search_service.events.decoder import decode_event
from search_service.events.stream import ensure_consumer_group, to_text
from search_service.events.types import (
    CORRELATION_FIELD,
    PAYLOAD_FIELD,
    DocumentCreated,
    DocumentDeleted,
    DocumentUpdated,
    LifecycleEvent,
    UnknownEvent,
)
from search_service.search.indexer import DocumentIndexer
from search_service.search.schemas import IndexOutcome

logger = structlog.get_logger()

PENDING_ID = "0"
NEW_ID = ">"
READ_ERROR_BACKOFF_SECONDS = 1.0


class ConsumerState(str, Enum):
    """Lifecycle states of the event consumer."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    SUBSCRIBED = "subscribed"
    PROCESSING = "processing"
    DRAINING = "draining"
    FAILED = "failed"


class EventConsumer:
    """Consumes lifecycle events from Redis Streams and applies them to the index.

    Each stream is a partition: its entries are handled one at a time in
    stream order, while different streams are consumed concurrently.
    Entries are acknowledged only after handling, so a crash leads to
    redelivery and every write must be idempotent.
    """

    def __init__(
        self,
        redis_client: Redis[Any],
        indexer: DocumentIndexer,
        dead_letters: DeadLetterPublisher,
        *,
        stream_names: list[str],
        group_name: str,
        consumer_name: str,
        block_ms: int = 2000,
        batch_size: int = 10,
        from_beginning: bool = True,
        shutdown_timeout: float = 30.0,
        read_error_backoff: float = READ_ERROR_BACKOFF_SECONDS,
    ) -> None:
        """Initialize consumer (call start() before run()).

        Args:
            redis_client: Stream broker client.
            indexer: Index writer receiving dispatched events.
            dead_letters: Destination for entries that failed to index.
            stream_names: Streams to consume, one task each.
            group_name: Consumer group name.
            consumer_name: Name of this consumer within the group.
            block_ms: Maximum milliseconds a fetch waits for new entries.
            batch_size: Maximum entries per fetch.
            from_beginning: Start a new group at the head of the stream.
            shutdown_timeout: Seconds stop() waits for in-flight entries.
            read_error_backoff: Seconds to wait after a failed fetch.
        """
        self._redis = redis_client
        self._indexer = indexer
        self._dead_letters = dead_letters
        self._streams = list(stream_names)
        self._group = group_name
        self._consumer = consumer_name
        self._block_ms = block_ms
        self._batch_size = batch_size
        self._from_beginning = from_beginning
        self._shutdown_timeout = shutdown_timeout
        self._read_error_backoff = read_error_backoff
        self._state = ConsumerState.DISCONNECTED
        self._stopping = asyncio.Event()
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def state(self) -> ConsumerState:
        """Current lifecycle state."""
        return self._state

    async def start(self) -> None:
        """Connect to the broker and join the consumer group on every stream.

        Raises:
            ConsumerStartupError: If no stream is configured or the broker
                cannot be reached.
        """
        if not self._streams:
            raise ConsumerStartupError("No streams configured")

        try:
            await self._redis.ping()
            self._state = ConsumerState.CONNECTED
            logger.info(
                "stream_consumer_connected",
                group=self._group,
                consumer=self._consumer,
            )
            for stream in self._streams:
                created = await ensure_consumer_group(
                    self._redis,
                    stream,
                    self._group,
                    from_beginning=self._from_beginning,
                )
                logger.info(
                    "stream_consumer_subscribed",
                    stream=stream,
                    group=self._group,
                    group_created=created,
                )
        except RedisError as e:
            logger.error("stream_consumer_start_failed", error=str(e))
            await self._close()
            raise ConsumerStartupError(f"Cannot subscribe to streams: {e}") from e

        self._state = ConsumerState.SUBSCRIBED

    async def run(self) -> None:
        """Consume all streams until stop() is called.

        If a stream task ends before stop(), the consumer moves to FAILED
        so readiness reports it.
        """
        if self._state is not ConsumerState.SUBSCRIBED:
            raise RuntimeError("Consumer must be started before run()")

        self._state = ConsumerState.PROCESSING
        self._tasks = []
        for stream in self._streams:
            task = asyncio.create_task(self._consume_stream(stream), name=f"consume:{stream}")
            task.add_done_callback(self._on_stream_task_done)
            self._tasks.append(task)
        logger.info("stream_consumer_running", streams=self._streams)

        await asyncio.gather(*self._tasks, return_exceptions=True)
        if not self._stopping.is_set():
            self._state = ConsumerState.FAILED

    async def stop(self) -> None:
        """Stop fetching, finish in-flight entries and disconnect.

        Idempotent. Tasks still busy after the shutdown timeout are
        cancelled; their unacknowledged entries are replayed on restart.
        """
        if self._state is ConsumerState.DISCONNECTED:
            return

        logger.info("stream_consumer_draining")
        self._state = ConsumerState.DRAINING
        self._stopping.set()

        if self._tasks:
            _, pending = await asyncio.wait(self._tasks, timeout=self._shutdown_timeout)
            if pending:
                logger.warning(
                    "stream_consumer_drain_timeout",
                    timeout_seconds=self._shutdown_timeout,
                    unfinished=len(pending),
                )
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)

        await self._close()

    async def handle_message(self, fields: dict[str, str]) -> IndexOutcome | None:
        """Decode one stream entry and apply it to the index.

        Malformed entries are logged and dropped.

        Args:
            fields: Entry fields as read from the stream.

        Returns:
            Outcome of the index write, or None if nothing was written.
        """
        raw = fields.get(PAYLOAD_FIELD)
        if not raw:
            logger.warning("event_empty")
            return None

        logger.info("event_received", data_preview=raw[:100])
        try:
            event = decode_event(raw)
        except MalformedEventError as e:
            logger.warning("event_malformed", reason=e.reason, detail=e.detail, data=raw)
            return None

        return await self.dispatch(event)

    async def dispatch(self, event: LifecycleEvent) -> IndexOutcome | None:
        """Route a decoded event to the indexer by kind.

        Args:
            event: Decoded lifecycle event.

        Returns:
            Outcome of the index write, or None for ignored kinds.
        """
        if isinstance(event, DocumentCreated | DocumentUpdated):
            outcome = await asyncio.to_thread(self._indexer.upsert, event.document)
        elif isinstance(event, DocumentDeleted):
            outcome = await asyncio.to_thread(self._indexer.remove, event.id)
        elif isinstance(event, UnknownEvent):
            logger.info("event_ignored", kind=event.kind, document_id=event.id)
            return None
        else:
            assert_never(event)

        logger.info(
            "event_processed",
            event_type=type(event).__name__,
            document_id=event.id,
            succeeded=outcome.succeeded,
        )
        return outcome

    async def _consume_stream(self, stream: str) -> None:
        cursor = PENDING_ID
        while not self._stopping.is_set():
            try:
                entries = await self._read(stream, cursor)
            except Exception as e:
                logger.error(
                    "stream_read_failed",
                    stream=stream,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                await self._sleep_unless_stopping(self._read_error_backoff)
                continue

            if cursor != NEW_ID:
                if not entries:
                    logger.info("stream_pending_replayed", stream=stream)
                    cursor = NEW_ID
                    continue
                cursor = entries[-1][0]

            for message_id, fields in entries:
                await self._process(stream, message_id, fields)

    async def _read(self, stream: str, cursor: str) -> list[tuple[str, dict[str, str]]]:
        response = await self._redis.xreadgroup(
            groupname=self._group,
            consumername=self._consumer,
            streams={stream: cursor},
            count=self._batch_size,
            block=self._block_ms if cursor == NEW_ID else None,
        )

        entries: list[tuple[str, dict[str, str]]] = []
        for _, messages in response or []:
            for message_id, fields in messages:
                decoded = {to_text(key): to_text(value) for key, value in (fields or {}).items()}
                entries.append((to_text(message_id), decoded))
        return entries

    def _on_stream_task_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled() or self._stopping.is_set():
            return

        exc = task.exception()
        logger.error(
            "stream_consumer_task_failed",
            task=task.get_name(),
            error=str(exc) if exc else "exited without stop()",
        )
        self._state = ConsumerState.FAILED

    async def _process(self, stream: str, message_id: str, fields: dict[str, str]) -> None:
        correlation_id = resolve_correlation_id(fields.get(CORRELATION_FIELD))
        with correlation_scope(correlation_id), structlog.contextvars.bound_contextvars(
            stream=stream,
            message_id=message_id,
        ):
            reason: str | None = None
            try:
                outcome = await self.handle_message(fields)
                if outcome is not None and not outcome.succeeded:
                    reason = outcome.error or "index write failed"
            except Exception as e:
                logger.exception("event_processing_error", error=str(e))
                reason = f"unexpected error: {e}"

            if reason is not None:
                await self._dead_letters.publish(
                    source_stream=stream,
                    message_id=message_id,
                    fields=fields,
                    reason=reason,
                    correlation_id=correlation_id,
                )

            try:
                await self._redis.xack(stream, self._group, message_id)
            except RedisError as e:
                logger.error("stream_ack_failed", error=str(e))

    async def _sleep_unless_stopping(self, delay: float) -> None:
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._stopping.wait(), timeout=delay)

    async def _close(self) -> None:
        try:
            await self._redis.aclose()
        except RedisError as e:
            logger.warning("stream_consumer_close_failed", error=str(e))
        self._state = ConsumerState.DISCONNECTED
        logger.info("stream_consumer_disconnected")
