"""Service configuration loaded from environment variables."""
from typing import Literal

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service configuration loaded from environment variables.

    Attributes:
        host: Bind address for the HTTP server.
        port: Port number for the HTTP server.
        debug: Enable debug logging and API documentation.
        log_format: Renderer for log lines ("json" or "console").
        service_name: Value of the ``service`` field on every log line.
        cors_origins_raw: Raw comma-separated CORS origins string.
        shutdown_timeout: Seconds to wait for in-flight work on shutdown.
        opensearch_url: Index store endpoint.
        opensearch_username: Optional basic-auth user for the index store.
        opensearch_password: Optional basic-auth password for the index store.
        opensearch_verify_certs: Verify TLS certificates of the index store.
        opensearch_timeout: Per-request timeout in seconds.
        opensearch_max_retries: Transport-level retries inside the client.
        index_name: Name of the search index.
        search_size: Maximum number of documents returned per query.
        redis_url: Event stream broker endpoint.
        stream_names_raw: Comma-separated stream names, one per partition.
        consumer_group: Consumer group shared by all service instances.
        consumer_name: Stable consumer name of this instance within the group.
        read_block_ms: Maximum milliseconds a single fetch blocks.
        read_batch_size: Maximum entries fetched per read.
        read_from_beginning: Replay the whole stream when the group is new.
        dead_letter_stream: Stream receiving entries that failed to index.
        index_retry_attempts: Attempts per index write before giving up.
        index_retry_min_wait: Minimum backoff between write attempts.
        index_retry_max_wait: Maximum backoff between write attempts.
    """

    model_config = SettingsConfigDict(
        env_prefix="SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 3003
    debug: bool = False
    log_format: Literal["json", "console"] = "json"
    service_name: str = "search-service"
    cors_origins_raw: str = "*"
    shutdown_timeout: float = 30.0

    opensearch_url: str = "http://localhost:9200"
    opensearch_username: str = ""
    opensearch_password: str = ""
    opensearch_verify_certs: bool = True
    opensearch_timeout: float = 60.0
    opensearch_max_retries: int = 5
    index_name: str = "documents"
    search_size: int = 10

    redis_url: str = "redis://localhost:6379/0"
    stream_names_raw: str = "document_events"
    consumer_group: str = "search-service-document-events-group"
    consumer_name: str = "search-service-consumer"
    read_block_ms: int = 2000
    read_batch_size: int = 10
    read_from_beginning: bool = True
    dead_letter_stream: str = "document_events:dlq"

    index_retry_attempts: int = 3
    index_retry_min_wait: float = 1.0
    index_retry_max_wait: float = 10.0

    @computed_field
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string.

        Returns:
            List of allowed origin URLs.
        """
        return [
            origin.strip()
            for origin in self.cors_origins_raw.split(",")
            if origin.strip()
        ]

    @computed_field
    @property
    def stream_names(self) -> list[str]:
        """Parse stream names from comma-separated string.

        Returns:
            List of stream names to consume, in configuration order.
        """
        return [
            name.strip()
            for name in self.stream_names_raw.split(",")
            if name.strip()
        ]
