"""Structured logging for diagnostics runs.

Every component logs through :func:`log_event` with a dotted event name,
component first and outcome last: ``probe.dns.failed``,
``health.check.succeeded``, ``preflight.retry_scheduled``,
``webhook.delivery.rejected``. The name is kept in ``event_name`` so JSON
output can be filtered on it even when a human readable ``message`` replaces
the rendered event text.

Records from libraries that log through stdlib ``logging`` (``httpx``,
``asyncio``) are rendered by the same structlog renderer as our own events.
"""

from __future__ import annotations

import logging
import sys
import uuid
from logging.handlers import RotatingFileHandler
from typing import Any

import structlog
from structlog.typing import Processor

from planka_doctor.config.settings import LOG_FORMAT_JSON, LoggingSettings

BoundLogger = structlog.stdlib.BoundLogger

LOGGER_NAMESPACE = "planka_doctor"

# httpx logs every request at INFO; that only helps when debugging.
_TRANSPORT_LOGGERS = ("httpx", "httpcore")

_SHARED_PROCESSORS: list[Processor] = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
]


def _renderer(settings: LoggingSettings) -> Processor:
    if settings.format == LOG_FORMAT_JSON:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def _formatter(settings: LoggingSettings) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(settings),
        ],
    )


def _handlers(settings: LoggingSettings) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if settings.file_path:
        handlers.append(
            RotatingFileHandler(
                settings.file_path,
                maxBytes=settings.max_bytes,
                backupCount=settings.backup_count,
                encoding="utf-8",
            )
        )
    formatter = _formatter(settings)
    for handler in handlers:
        handler.setLevel(settings.level)
        handler.setFormatter(formatter)
    return handlers


def configure_logging(settings: LoggingSettings) -> None:
    """Route structlog and stdlib records to stderr and the optional log file.

    Safe to call repeatedly: previous handlers are replaced and loggers are
    not cached, so each CLI command (and test) gets the settings it asked for.
    """

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        # Only handlers built here are closed; others belong to the host app.
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            handler.close()
    root_logger.setLevel(settings.level)
    for handler in _handlers(settings):
        root_logger.addHandler(handler)

    transport_level = logging.DEBUG if settings.level <= logging.DEBUG else logging.WARNING
    for name in _TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str = LOGGER_NAMESPACE) -> BoundLogger:
    return structlog.get_logger(name)


def attach_run_context(
    logger: BoundLogger,
    *,
    run_id: str | None = None,
    **base_fields: Any,
) -> BoundLogger:
    """Bind a diagnostics run identifier plus any non-empty fields."""

    bound = logger.bind(run_id=run_id or uuid.uuid4().hex[:12])
    extras = {key: value for key, value in base_fields.items() if value is not None}
    if extras:
        bound = bound.bind(**extras)
    return bound


def log_event(
    logger: BoundLogger,
    event: str,
    *,
    level: int = logging.INFO,
    message: str | None = None,
    **fields: Any,
) -> None:
    """Log ``event`` with its non-``None`` fields; ``message`` replaces the text."""

    extras = {key: value for key, value in fields.items() if value is not None}
    logger.log(level, message or event, event_name=event, **extras)


__all__ = [
    "BoundLogger",
    "LOGGER_NAMESPACE",
    "attach_run_context",
    "configure_logging",
    "get_logger",
    "log_event",
]
