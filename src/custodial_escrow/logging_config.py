"""Structured logging configuration using structlog.

Console output in development, one JSON object per line elsewhere. Entries
emitted while serving a request carry the request_id bound by the API
middleware, and every entry is tagged with the service name.

Deal amounts are unbounded integers. JSON consumers commonly parse numbers
as IEEE doubles, so in JSON mode any integer wider than 53 bits is written
as a decimal string instead of a number that would silently round.

Usage:
    from custodial_escrow.logging_config import configure_logging, get_logger
    configure_logging(get_settings())
    logger = get_logger(__name__)
    logger.info("escrow.created", deal_id="ab12...", amount=10**30)
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from custodial_escrow.config import Settings

SERVICE_NAME = "custodial-escrow"

# Largest integer a double represents exactly
MAX_SAFE_JSON_INT = 2**53 - 1

_NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "httpx", "httpcore")


def stringify_wide_ints(
    _: logging.Logger | None, __: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Render integers outside the double-safe range as decimal strings."""
    for key, value in event_dict.items():
        if isinstance(value, int) and not isinstance(value, bool):
            if abs(value) > MAX_SAFE_JSON_INT:
                event_dict[key] = str(value)
    return event_dict


def add_service_name(
    _: logging.Logger | None, __: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def setup_logging(log_level: str = "DEBUG", json_logs: bool = False) -> None:
    """Configure structlog on top of the stdlib root logger.

    Args:
        log_level: Standard Python log level string (DEBUG, INFO, WARNING, etc.)
        json_logs: If True, output JSON. If False, colored console.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        add_service_name,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    render_chain: list[structlog.types.Processor] = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
    ]
    if json_logs:
        render_chain += [
            structlog.processors.format_exc_info,
            stringify_wide_ints,
            structlog.processors.JSONRenderer(),
        ]
    else:
        render_chain.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=render_chain,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.DEBUG))

    for noisy_logger in _NOISY_LOGGERS:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)


def configure_logging(settings: Settings) -> None:
    """Set up logging from application settings (JSON outside development)."""
    setup_logging(log_level=settings.app_log_level, json_logs=not settings.is_development)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_request_context(**values: Any) -> None:
    """Start a fresh request scope and bind `values` into it."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**values)
