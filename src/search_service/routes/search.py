"""Full-text search API endpoint."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from search_service.search.schemas import ErrorResponse, IndexedDocument

if TYPE_CHECKING:
    from search_service.search.query import QueryService

logger = structlog.get_logger()

router = APIRouter(tags=["search"])

MISSING_QUERY_MESSAGE = 'Missing required query parameter "q"'


@router.get(
    "/search",
    response_model=list[IndexedDocument],
    response_model_by_alias=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Full-text search across indexed documents",
    description="Fuzzy multi-field match on title and body, title weighted double.",
)
def search(
    request: Request,
    q: str | None = Query(default=None, description="Search query string"),
) -> list[IndexedDocument] | JSONResponse:
    """Search indexed documents by relevance.

    Runs in the request threadpool since the index client is blocking.

    Args:
        request: FastAPI request (provides access to app state).
        q: Search query string.

    Returns:
        Documents in descending relevance order, or a 400 error payload
        when q is missing.
    """
    correlation_id: str = request.state.correlation_id
    query_service: QueryService = request.app.state.query_service

    if not q:
        logger.warning("search_query_missing")
        body = ErrorResponse(message=MISSING_QUERY_MESSAGE, correlation_id=correlation_id)
        return JSONResponse(status_code=400, content=body.model_dump(by_alias=True))

    documents = query_service.search(q)
    logger.info("search_request_completed", count=len(documents))
    return documents
