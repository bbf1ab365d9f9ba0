"""Logging configuration using structlog."""

import logging
import sys

import structlog

from cryptotracker.config.settings import Settings, get_settings

# Libraries that log one line per HTTP request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "hpack", "postgrest")


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and stdlib logging for the application.

    Debug mode renders colored console output; otherwise every event is a
    JSON line. Per-request logs from the HTTP stack stay at WARNING or
    above so upstream polling does not flood the output.

    Args:
        settings: Settings to read the level and mode from. Defaults to
            the cached application settings.
    """
    settings = settings or get_settings()
    log_level = logging.getLevelName(settings.log_level)

    renderer: structlog.types.Processor = (
        structlog.dev.ConsoleRenderer()
        if settings.debug
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))
