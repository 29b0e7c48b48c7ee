"""Dead-letter stream for entries that could not be indexed."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = structlog.get_logger()


class DeadLetterPublisher:
    """Copy failed stream entries to a dead-letter stream with error metadata.

    A blank stream name disables publishing; failures are then only logged.
    """

    def __init__(
        self,
        redis_client: Redis[Any],
        stream_name: str,
        *,
        maxlen: int | None = 10000,
    ) -> None:
        """Initialize publisher.

        Args:
            redis_client: Stream broker client used for XADD.
            stream_name: Dead-letter stream; blank disables publishing.
            maxlen: Approximate cap on dead-letter stream length.
        """
        self.redis_client = redis_client
        self.stream_name = stream_name
        self.maxlen = maxlen

    @property
    def enabled(self) -> bool:
        """Whether a dead-letter stream is configured."""
        return bool(self.stream_name)

    async def publish(
        self,
        *,
        source_stream: str,
        message_id: str,
        fields: dict[str, str],
        reason: str,
        correlation_id: str,
    ) -> bool:
        """Record a failed entry.

        Args:
            source_stream: Stream the entry was read from.
            message_id: Stream id of the failed entry.
            fields: Original entry fields.
            reason: Why processing failed.
            correlation_id: Correlation id of the failed unit of work.

        Returns:
            True if the entry was written to the dead-letter stream.
        """
        if not self.enabled:
            logger.error(
                "dead_letter_disabled",
                source_stream=source_stream,
                message_id=message_id,
                reason=reason,
            )
            return False

        entry = {
            **fields,
            "source_stream": source_stream,
            "message_id": message_id,
            "reason": reason,
            "failed_at": datetime.now(UTC).isoformat(),
            "correlation_id": correlation_id,
        }
        try:
            await self.redis_client.xadd(
                name=self.stream_name,
                fields=entry,
                maxlen=self.maxlen,
                approximate=True,
            )
        except RedisError as e:
            logger.error(
                "dead_letter_publish_failed",
                source_stream=source_stream,
                message_id=message_id,
                error=str(e),
            )
            return False

        logger.warning(
            "dead_letter_published",
            dead_letter_stream=self.stream_name,
            source_stream=source_stream,
            message_id=message_id,
            reason=reason,
        )
        return True
