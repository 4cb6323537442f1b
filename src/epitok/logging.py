"""Structured logging configuration using structlog.

Provides JSON output for production and human-readable console output for development.
All logging throughout the project should use get_logger() instead of print().

Call sites pass URLs through redact_url() themselves, since a library user may
never call setup_logging(). The redact_autologin processor catches anything
that slips through once logging is configured.
"""

import logging
import sys

import structlog

from epitok.config import EpitokConfig
from epitok.utils import redact_url


def redact_autologin(
    _logger: object, _method_name: str, event_dict: dict[str, object]
) -> dict[str, object]:
    """Mask autologin secrets in every string value of a log event."""
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = redact_url(value)
    return event_dict


def setup_logging(json_output: bool = False, log_level: str = "INFO") -> None:
    """Configure structlog to write to stderr.

    stdout is left to command output (tables, JSON). Loggers are not cached, so
    configuring again (e.g. an embedding application) takes effect everywhere.

    Args:
        json_output: If True, output JSON (production). If False, console format (dev).
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_autologin,
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    # urllib3 logs full request URLs at DEBUG; keep it quieter than our own logs
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level)
    logging.getLogger("urllib3").setLevel(max(numeric_level, logging.WARNING))


def setup_logging_from_config(
    config: EpitokConfig,
    json_output: bool | None = None,
    log_level: str | None = None,
) -> None:
    """Configure logging from settings, letting explicit arguments win."""
    setup_logging(
        json_output=config.log_json if json_output is None else json_output,
        log_level=log_level or config.log_level,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance bound with the module name.

    Args:
        name: Logger name (typically __name__ from calling module).

    Returns:
        Configured structlog logger with module name context.
    """
    return structlog.get_logger(name)
