"""Correlation id middleware and top-level request error boundary."""
from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from search_service.correlation import (
    CORRELATION_HEADER,
    correlation_scope,
    resolve_correlation_id,
)
from search_service.search.schemas import ErrorResponse

logger = structlog.get_logger()


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Attach a correlation id to every request and response.

    Reuses the inbound X-Correlation-ID header or generates one, exposes
    it as request.state.correlation_id and binds it to every log line of
    the request. Unhandled exceptions are answered with a generic 500
    carrying the correlation id.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process request inside a correlation scope.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware or route handler.

        Returns:
            HTTP response with the correlation header set.
        """
        correlation_id = resolve_correlation_id(request.headers.get(CORRELATION_HEADER))
        request.state.correlation_id = correlation_id

        with correlation_scope(correlation_id):
            try:
                response = await call_next(request)
            except Exception as e:
                logger.exception(
                    "unhandled_request_error",
                    method=request.method,
                    path=request.url.path,
                    error=str(e),
                )
                body = ErrorResponse(
                    message="Internal server error",
                    correlation_id=correlation_id,
                )
                response = JSONResponse(
                    status_code=500,
                    content=body.model_dump(by_alias=True),
                )

        response.headers[CORRELATION_HEADER] = correlation_id
        return response
