"""structlog configuration.

Set AD_CREATOR_LOG_LEVEL to DEBUG to see every poll attempt.
"""

from __future__ import annotations

import logging

import structlog

from ad_creator.config import settings


def configure_logging(level: str | None = None, *, json_output: bool = False) -> None:
    """Route structlog through stdlib logging with a console or JSON renderer."""
    level_name = (level or settings.log_level).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(level=log_level, format="%(message)s")

    # Suppress noisy third-party loggers
    for name in ("httpx", "httpcore", "openai", "anthropic"):
        logging.getLogger(name).setLevel(logging.WARNING)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def mask_secret(value: str | None) -> str:
    """Return a log-safe preview of an API key."""
    if not value:
        return "null"
    return f"{value[:6]}..."
