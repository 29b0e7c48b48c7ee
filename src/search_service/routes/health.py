"""Health check endpoints for liveness and readiness checks."""
import asyncio
from typing import Any, Literal

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from opensearchpy import OpenSearch
from opensearchpy.exceptions import OpenSearchException
from pydantic import BaseModel
from redis.asyncio import Redis
from redis.exceptions import RedisError

from search_service.events.consumer import ConsumerState, EventConsumer

router = APIRouter(prefix="/health", tags=["health"])

HEALTHY_CONSUMER_STATES = frozenset({ConsumerState.SUBSCRIBED, ConsumerState.PROCESSING})


class LivenessResponse(BaseModel):
    """Response model for liveness check.

    Attributes:
        status: Always 'alive' when process is running.
    """

    status: Literal["alive"]


class ReadinessCheck(BaseModel):
    """Individual dependency check result.

    Attributes:
        name: Identifier for the dependency being checked.
        status: Result of the check ('ok' or 'failed').
        message: Error details when status is 'failed'.
    """

    name: str
    status: Literal["ok", "failed"]
    message: str | None = None


class ReadinessResponse(BaseModel):
    """Response model for readiness check.

    Attributes:
        status: Overall readiness ('ready' or 'not_ready').
        checks: List of individual dependency check results.
    """

    status: Literal["ready", "not_ready"]
    checks: list[ReadinessCheck]


async def _check_index_store(client: OpenSearch | None) -> ReadinessCheck:
    """Verify the index store answers a ping.

    Args:
        client: Index store client, None before startup completed.

    Returns:
        Check result with status and optional error message.
    """
    if client is None:
        return ReadinessCheck(name="index_store", status="failed", message="Not initialized")
    try:
        if await asyncio.to_thread(client.ping):
            return ReadinessCheck(name="index_store", status="ok")
        return ReadinessCheck(name="index_store", status="failed", message="Ping failed")
    except OpenSearchException as e:
        return ReadinessCheck(name="index_store", status="failed", message=str(e))


async def _check_stream_broker(client: "Redis[Any] | None") -> ReadinessCheck:
    """Verify the stream broker answers a ping.

    Args:
        client: Broker client, None before startup completed.

    Returns:
        Check result with status and optional error message.
    """
    if client is None:
        return ReadinessCheck(name="stream_broker", status="failed", message="Not initialized")
    try:
        await client.ping()
        return ReadinessCheck(name="stream_broker", status="ok")
    except RedisError as e:
        return ReadinessCheck(name="stream_broker", status="failed", message=str(e))


def _check_consumer(consumer: EventConsumer | None) -> ReadinessCheck:
    """Verify the event consumer is subscribed or processing."""
    if consumer is None:
        return ReadinessCheck(name="event_consumer", status="failed", message="Not initialized")
    if consumer.state in HEALTHY_CONSUMER_STATES:
        return ReadinessCheck(name="event_consumer", status="ok")
    return ReadinessCheck(
        name="event_consumer",
        status="failed",
        message=f"Consumer is {consumer.state.value}",
    )


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness endpoint.

    Returns immediate success if the process is running.

    Returns:
        Liveness status response.
    """
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> JSONResponse:
    """Readiness endpoint.

    Validates the index store, the stream broker and the consumer state.
    Returns 200 if all checks pass, 503 if any fail.

    Returns:
        Readiness status with individual check results.
    """
    state = request.app.state
    checks = [
        await _check_index_store(getattr(state, "search_client", None)),
        await _check_stream_broker(getattr(state, "redis_client", None)),
        _check_consumer(getattr(state, "consumer", None)),
    ]
    all_ok = all(c.status == "ok" for c in checks)
    response = ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        checks=checks,
    )
    code = status.HTTP_200_OK if all_ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(content=response.model_dump(), status_code=code)
