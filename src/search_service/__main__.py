"""Entry point for the search service."""

import asyncio
import contextlib
import sys

import structlog
import uvicorn

from search_service.app import create_app
from search_service.config import Settings
from search_service.lifecycle import GracefulShutdown
from search_service.logging import configure_logging

logger = structlog.get_logger()


async def serve(settings: Settings) -> bool:
    """Run uvicorn server with graceful shutdown support.

    On SIGTERM/SIGINT the server stops accepting connections, lets
    in-flight requests finish, and runs the lifespan teardown which
    drains and disconnects the event consumer.

    Args:
        settings: Server configuration.

    Returns:
        True if the service started, False if startup failed.
    """
    app = create_app(settings)
    shutdown = GracefulShutdown()

    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level="warning",
        access_log=False,
        timeout_graceful_shutdown=int(settings.shutdown_timeout),
    )
    server = uvicorn.Server(config)
    shutdown.install(asyncio.get_running_loop())

    serve_task = asyncio.create_task(server.serve())
    trigger_task = asyncio.create_task(shutdown.wait_for_trigger())

    done, _ = await asyncio.wait(
        {serve_task, trigger_task},
        return_when=asyncio.FIRST_COMPLETED,
    )
    if trigger_task in done:
        server.should_exit = True
        await serve_task
    else:
        trigger_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await trigger_task

    return server.started


def main() -> None:
    """Entry point for python -m search_service."""
    settings = Settings()
    configure_logging(
        debug=settings.debug,
        log_format=settings.log_format,
        service_name=settings.service_name,
    )

    started = True
    with contextlib.suppress(KeyboardInterrupt):
        started = asyncio.run(serve(settings))

    if not started:
        logger.error("service_start_failed")
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
