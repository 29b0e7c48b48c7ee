"""Redis Streams connection helpers."""

from __future__ import annotations

from typing import Any

from redis import asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import ResponseError


def create_redis_client(url: str) -> Redis[Any]:
    """Build the process-wide stream broker client.

    Responses stay raw bytes; the consumer decodes stream fields itself so
    an entry that is not valid UTF-8 cannot break the read.
    """
    return redis.from_url(url)


def to_text(value: str | bytes) -> str:
    """Decode a stream id, field name or value, replacing invalid UTF-8."""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


async def ensure_consumer_group(
    client: Redis[Any],
    stream_name: str,
    group_name: str,
    *,
    from_beginning: bool = True,
) -> bool:
    """Ensure a consumer group exists for the stream.

    Creates the stream when missing.

    Returns:
        True if the group was created, False if it already existed.
    """
    try:
        await client.xgroup_create(
            name=stream_name,
            groupname=group_name,
            id="0-0" if from_beginning else "$",
            mkstream=True,
        )
    except ResponseError as exc:
        if "BUSYGROUP" in str(exc):
            return False
        raise
    return True
