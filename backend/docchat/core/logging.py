"""
Structured logging via structlog.

All application log entries carry consistent fields:
  timestamp, level, logger, event, thread_id, node, tool_name,
  passages, latency_ms, error_type, ...

Usage:
    from docchat.core.logging import get_logger
    log = get_logger(__name__)
    log.info("chat_complete", thread_id=thread_id, steps=3, latency_ms=1200)
"""

import logging
import sys

import structlog
from docchat.core.config import get_settings


def configure_logging() -> None:
    """
    Configure structlog processors. Call once at process startup.
    Development: pretty colored output.
    Production:  JSON output (machine-readable for cloud logging).
    """
    settings = get_settings()
    is_dev = settings.environment == "development"
    level = getattr(logging, settings.log_level or ("DEBUG" if is_dev else "INFO"))

    # Logs go to stderr so the interactive session keeps stdout for answers.
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level, force=True)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if is_dev:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__):
    return structlog.get_logger(name)
