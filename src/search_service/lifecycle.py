"""Graceful shutdown coordinator for the server process."""
import asyncio
import signal

import structlog

logger = structlog.get_logger()

SHUTDOWN_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGTERM, signal.SIGINT)


class GracefulShutdown:
    """Turns termination signals into a single awaitable shutdown trigger.

    Attributes:
        is_triggered: Whether shutdown has been triggered.
        signal_name: Name of the signal that triggered shutdown, if any.
    """

    def __init__(self) -> None:
        """Initialize shutdown coordinator."""
        self._event = asyncio.Event()
        self.signal_name: str | None = None

    @property
    def is_triggered(self) -> bool:
        """Check if shutdown has been triggered.

        Returns:
            True if shutdown signal received.
        """
        return self._event.is_set()

    def install(self, loop: asyncio.AbstractEventLoop) -> None:
        """Route SIGTERM and SIGINT on the running loop to trigger()."""
        for sig in SHUTDOWN_SIGNALS:
            loop.add_signal_handler(sig, self.trigger, sig.name)

    def trigger(self, signal_name: str = "manual") -> None:
        """Signal the server to stop accepting work and drain.

        Idempotent - calling multiple times has no additional effect.

        Args:
            signal_name: Name of the originating signal, for logging.
        """
        if self._event.is_set():
            return
        self.signal_name = signal_name
        logger.info("shutdown_triggered", signal=signal_name)
        self._event.set()

    async def wait_for_trigger(self) -> None:
        """Wait indefinitely for shutdown signal."""
        await self._event.wait()
