"""structlog setup shared by request handlers and background uploads."""

import logging
import sys
from typing import Any
import structlog
from ..config import settings

# Client libraries that log every S3 or HTTP round trip at INFO
QUIET_LOGGERS = ("botocore", "boto3", "s3transfer", "urllib3", "httpx", "httpcore", "aiosqlite")


def log_level() -> int:
    return getattr(logging, settings.log_level.upper(), logging.INFO)


def add_service_fields(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Tag every event with the service and the environment it runs in."""
    event_dict.setdefault("service", settings.app_name)
    event_dict.setdefault("environment", settings.environment)
    return event_dict


def configure_logging() -> None:
    """Route stdlib and structlog output to stdout at LOG_LEVEL."""
    level = log_level()
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    if settings.debug:
        exc_processor = structlog.dev.set_exc_info
        renderer = structlog.dev.ConsoleRenderer()
    else:
        exc_processor = structlog.processors.format_exc_info
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            add_service_fields,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            exc_processor,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> Any:
    """Lazy logger whose events carry the module that emitted them."""
    return structlog.get_logger(module=name)
