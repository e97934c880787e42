"""
Structured logging configuration using structlog.

JSON lines in production, coloured console output in development. Logs go
to stdout; the process manager handles persistence.

Never log bearer tokens, signatures or public keys. Account addresses and
nonces are fine: they are public.
"""

import logging
import sys

import structlog

from signin_api.config import settings


def setup_logging() -> None:
    """Configure structlog and stdlib logging integration. Call once at startup."""
    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    level = getattr(logging, settings.log_level.upper())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # stdlib loggers (APScheduler, SQLAlchemy, uvicorn) share stdout
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.INFO)
