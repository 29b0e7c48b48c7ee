"""FastAPI application factory and lifespan management."""

import asyncio
import contextlib
import functools
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from search_service.config import Settings
from search_service.events import (
    ConsumerState,
    DeadLetterPublisher,
    EventConsumer,
    create_redis_client,
)
from search_service.middleware.correlation import CorrelationIdMiddleware
from search_service.middleware.cors import configure_cors
from search_service.middleware.logging import RequestLoggingMiddleware
from search_service.routes import health, search
from search_service.search import (
    DocumentIndexer,
    QueryService,
    RetryPolicy,
    SchemaManager,
    create_search_client,
)

logger = structlog.get_logger()


def _log_consumer_exit(consumer: EventConsumer, task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("event_consumer_crashed", error=str(exc), exc_info=exc)
    elif consumer.state is ConsumerState.FAILED:
        logger.error("event_consumer_failed", state=consumer.state.value)
    else:
        logger.info("event_consumer_exited", state=consumer.state.value)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle events.

    Builds the index store and stream broker clients, ensures the index
    schema, then starts the event consumer. Schema or subscription
    failures propagate and abort startup. On shutdown the consumer drains
    and disconnects before the store client is closed.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    logger.info("service_startup", host=settings.host, port=settings.port)

    search_client = create_search_client(settings)
    redis_client = create_redis_client(settings.redis_url)
    app.state.search_client = search_client
    app.state.redis_client = redis_client

    try:
        schema = SchemaManager(search_client, settings.index_name)
        await asyncio.to_thread(schema.ensure_schema)
        logger.info("search_index_ready", index=settings.index_name)

        indexer = DocumentIndexer(
            search_client,
            settings.index_name,
            retry=RetryPolicy(
                attempts=settings.index_retry_attempts,
                min_wait=settings.index_retry_min_wait,
                max_wait=settings.index_retry_max_wait,
            ),
        )
        app.state.query_service = QueryService(
            search_client,
            settings.index_name,
            size=settings.search_size,
        )

        consumer = EventConsumer(
            redis_client,
            indexer,
            DeadLetterPublisher(redis_client, settings.dead_letter_stream),
            stream_names=settings.stream_names,
            group_name=settings.consumer_group,
            consumer_name=settings.consumer_name,
            block_ms=settings.read_block_ms,
            batch_size=settings.read_batch_size,
            from_beginning=settings.read_from_beginning,
            shutdown_timeout=settings.shutdown_timeout,
        )
        await consumer.start()
        app.state.consumer = consumer
    except Exception:
        logger.error("service_startup_failed", exc_info=True)
        await redis_client.aclose()
        search_client.close()
        raise

    consumer_task = asyncio.create_task(consumer.run(), name="event-consumer")
    consumer_task.add_done_callback(functools.partial(_log_consumer_exit, consumer))
    logger.info("service_ready")

    try:
        yield
    finally:
        await consumer.stop()
        consumer_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await consumer_task

        search_client.close()
        logger.info("service_shutdown")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Factory function to create configured FastAPI application.

    Args:
        settings: Configuration instance. Creates default if None.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="Search Service",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.debug else None,
    )
    app.state.settings = settings

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
    configure_cors(app, settings.cors_origins)

    app.include_router(health.router)
    app.include_router(search.router)

    return app
