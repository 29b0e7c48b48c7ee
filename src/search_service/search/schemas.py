"""Pydantic schemas for indexed documents and search API responses."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class IndexedDocument(BaseModel):
    """Document as stored in, and returned from, the search index.

    Serialized with camelCase keys (``ownerId``, ``createdAt``...) both in
    the index and on the wire.

    Attributes:
        id: Stable unique identifier, the sole addressing key in the index.
        owner_id: Identifier of the owning user.
        title: Document title, analyzed for full-text search.
        body: Document body, analyzed for full-text search.
        created_at: Creation timestamp, if known.
        updated_at: Last update timestamp, if known.
        popularity_score: Optional popularity counter.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str = Field(min_length=1)
    owner_id: str
    title: str
    body: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    popularity_score: int | None = None

    def to_source(self) -> dict[str, object]:
        """Render the document body sent to the index store."""
        return self.model_dump(mode="json", by_alias=True)


class IndexOutcome(BaseModel):
    """Result of a single index write.

    Attributes:
        document_id: Identifier of the document written.
        operation: Which write was attempted.
        succeeded: Whether the desired end state now holds in the index.
        attempts: Number of store calls made.
        error: Final error message when the write failed.
    """

    document_id: str
    operation: Literal["upsert", "remove"]
    succeeded: bool
    attempts: int = 1
    error: str | None = None


class ErrorResponse(BaseModel):
    """Error payload returned by the HTTP boundary."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str
    correlation_id: str
