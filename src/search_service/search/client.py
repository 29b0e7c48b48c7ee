"""Index store client construction."""

import structlog
from opensearchpy import OpenSearch

from search_service.config import Settings

logger = structlog.get_logger()


def create_search_client(settings: Settings) -> OpenSearch:
    """Build the process-wide OpenSearch client.

    Args:
        settings: Service configuration with store endpoint and credentials.

    Returns:
        Configured synchronous OpenSearch client.
    """
    http_auth = None
    if settings.opensearch_username:
        http_auth = (settings.opensearch_username, settings.opensearch_password)

    logger.info(
        "search_client_init",
        url=settings.opensearch_url,
        index=settings.index_name,
    )
    return OpenSearch(
        hosts=[settings.opensearch_url],
        http_auth=http_auth,
        verify_certs=settings.opensearch_verify_certs,
        ssl_show_warn=settings.opensearch_verify_certs,
        timeout=settings.opensearch_timeout,
        max_retries=settings.opensearch_max_retries,
        retry_on_timeout=True,
    )
