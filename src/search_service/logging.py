"""Structured logging configuration using structlog."""

import logging
import sys

import structlog
from structlog.typing import EventDict, WrappedLogger


def _add_service(service_name: str) -> structlog.typing.Processor:
    """Build a processor that stamps every event with the service name."""

    def processor(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def configure_logging(
    debug: bool = False,
    log_format: str = "json",
    service_name: str = "search-service",
) -> None:
    """Configure structlog for JSON or console output.

    Args:
        debug: Enable debug-level logging when True.
        log_format: "json" for machine-readable lines, "console" for local dev.
        service_name: Name added to every log line.
    """
    level = logging.DEBUG if debug else logging.INFO

    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        _add_service(service_name),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if log_format == "console":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=level,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    for name in ["uvicorn", "uvicorn.error", "uvicorn.access", "opensearch"]:
        logging.getLogger(name).handlers = []
        logging.getLogger(name).propagate = True
