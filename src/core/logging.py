"""Structured logging setup.

Console rendering in development, JSON lines everywhere else. Request
context (request id, method, path) is bound through ``structlog.contextvars``
by the request logging middleware and merged into every entry.
"""

import logging
import sys

import structlog
from structlog.types import Processor

from core.config import Settings, settings as default_settings


def setup_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the standard library root logger."""
    settings = settings or default_settings
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.log_format == "json" or settings.is_production:
        renderer: Processor = structlog.processors.JSONRenderer()
        shared_processors.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    # Third-party libraries (uvicorn, sqlalchemy) log through the stdlib
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )
    for logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        logging.getLogger(logger_name).setLevel(level)
