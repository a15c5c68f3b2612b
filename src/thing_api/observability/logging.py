"""Structured logging for thing-api.

structlog renders every record, including stdlib records from uvicorn and
FastAPI, through one formatter on stdout. The request ID set by
``RequestIdMiddleware`` is attached to every entry logged while that
request is in flight.

Level and output format come from ``ThingAPISettings`` (``LOG_LEVEL``,
``LOG_FORMAT``); ``python -m thing_api`` passes them in at startup.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import IO

import structlog

LOG_FORMATS = ("json", "console")

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

_configured = False


def _add_request_id(logger: logging.Logger, method_name: str, event_dict: dict) -> dict:
    rid = request_id_ctx.get()
    if rid is not None:
        event_dict["request_id"] = rid
    return event_dict


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        _add_request_id,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _renderer(log_format: str):
    if log_format == "console":
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def configure_logging(
    level: str = "INFO",
    log_format: str = "json",
    *,
    stream: IO[str] | None = None,
) -> None:
    """Route structlog and stdlib logging through one formatter.

    Only the first call has an effect.

    Args:
        level: Root log level name, e.g. ``"INFO"``.
        log_format: ``"json"`` for JSON lines, ``"console"`` for the
            human-readable dev renderer.
        stream: Output stream; stdout when omitted.
    """
    global _configured
    if _configured:
        return
    _configured = True

    processors = _shared_processors()
    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.getLevelName(level.upper()))

    # request_completed replaces uvicorn's access log.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
