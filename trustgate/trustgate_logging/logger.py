"""
Structured logging for the trust engine.

structlog, configured once on first import: ISO timestamps, level, the
structlog event renamed to event_type, and user/device identifiers truncated
before rendering so full ids never reach the log sink. JSON output unless
LOG_FORMAT is something other than "json".

Imports nothing from trustgate except config (which imports nothing else from
trustgate), so every module can import it without cycles.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator

import structlog

from trustgate.config.settings import get_settings

# Keys whose values are identifiers of people or devices.
ID_KEYS = ("user_id", "device_id")
ID_KEEP_CHARS = 8


def short_id(value: str | None, keep: int = ID_KEEP_CHARS) -> str:
    """Truncate an identifier for logs (user ids, device ids)."""
    if not value:
        return ""
    return value[:keep] + "..." if len(value) > keep else value


def _truncate_ids(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key in ID_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str) and not value.endswith("..."):
            event_dict[key] = short_id(value)
    return event_dict


def _event_type(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Rename structlog 'event' to event_type."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    return event_dict


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """
    (Re)configure structlog. Defaults come from Settings.log_level and
    Settings.log_format (LOG_LEVEL and LOG_FORMAT in the environment or .env).
    """
    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    log_format = (fmt or settings.log_format).strip().lower()

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _truncate_ids,
        _event_type,
    ]
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level_name, logging.INFO)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_logging()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Return a structured logger for the given module name.

        logger = get_logger(__name__)
        logger.info("trust_evaluated", user_id=uid, score=92, status="trusted")
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_user(user_id: str, device_id: str | None = None) -> structlog.BoundLogger:
    """Return a logger with user_id (and device_id) bound to all subsequent calls."""
    log = get_logger("trustgate").bind(user_id=user_id)
    if device_id:
        log = log.bind(device_id=device_id)
    return log


@contextmanager
def evaluation_context(user_id: str, device_id: str) -> Iterator[None]:
    """Attach user_id/device_id to every log line emitted inside the block (this thread only)."""
    with structlog.contextvars.bound_contextvars(user_id=user_id, device_id=device_id):
        yield
