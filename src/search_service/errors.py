"""Exception hierarchy for the search service."""


class SearchServiceError(Exception):
    """Base class for errors raised by the search service."""


class SchemaError(SearchServiceError):
    """Raised when the search index schema cannot be verified or created."""

    def __init__(self, message: str, index: str) -> None:
        """Initialize schema error.

        Args:
            message: Error description.
            index: Name of the index that could not be prepared.
        """
        super().__init__(message)
        self.index = index


class ConsumerStartupError(SearchServiceError):
    """Raised when the event consumer cannot connect or subscribe."""


class MalformedEventError(SearchServiceError):
    """Raised when a stream payload is not a valid lifecycle event."""

    def __init__(self, reason: str, detail: str | None = None) -> None:
        """Initialize malformed event error.

        Args:
            reason: Short machine-readable reason (e.g. "invalid_json").
            detail: Optional human-readable detail.
        """
        super().__init__(detail or reason)
        self.reason = reason
        self.detail = detail
