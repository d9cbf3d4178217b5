"""Proplist logging configuration.

:func:`configure_logging` installs a single stderr handler on the root
logger; modules only ever do ``logger = logging.getLogger(__name__)``.

Every record passing through the handler is stamped with the id of the
use-case execution that produced it (:data:`REQUEST_ID_CTX`), so all lines of
one ``execute()`` call, including those of the storage adapters it awaits,
can be grepped together.

Environment (read when ``configure_logging`` runs, explicit args win):
    LOG_LEVEL   DEBUG | INFO | WARNING | ERROR | CRITICAL   (default: INFO)
    LOG_FORMAT  text | json                                 (default: text)

Typical usage::

    from proplist.core import configure_logging

    configure_logging(level="DEBUG", fmt="json")
"""

from __future__ import annotations

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

__all__ = ["configure_logging", "JsonFormatter", "REQUEST_ID_CTX", "RequestContextFilter"]

logger = logging.getLogger(__name__)

#: Id of the use-case execution in progress; ``"-"`` outside of one.
#: Tasks started with ``asyncio.gather`` inherit the caller's value.
REQUEST_ID_CTX: ContextVar[str] = ContextVar("request_id", default="-")

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_FORMATS = ("text", "json")

#: Third-party loggers kept at WARNING unless the process runs at DEBUG.
_QUIET_LOGGERS = ("aiosqlite", "asyncio")

_TEXT_FORMAT = "%(asctime)s %(levelname)-8s [%(request_id)s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class RequestContextFilter(logging.Filter):
    """Copy :data:`REQUEST_ID_CTX` onto each record as ``request_id``."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.request_id = REQUEST_ID_CTX.get("-")
        return True


def _pick(name: str, value: str, allowed: tuple[str, ...]) -> str:
    if value not in allowed:
        raise ValueError(f"Unknown {name} {value!r}. Must be one of: {', '.join(allowed)}")
    return value


def _build_handler(level: str, fmt: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.addFilter(RequestContextFilter())
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(fmt=_TEXT_FORMAT, datefmt=_DATE_FORMAT))
    return handler


def configure_logging(
    level: str | None = None,
    fmt: str | None = None,
    *,
    force: bool = False,
) -> None:
    """Set up the root logger.

    When the root logger already has handlers (pytest capture, a second
    call) only its level changes, unless *force* is given.

    Args:
        level: Level name; falls back to ``$LOG_LEVEL`` then ``INFO``.
        fmt: ``"text"`` or ``"json"``; falls back to ``$LOG_FORMAT`` then ``text``.
        force: Replace existing handlers.

    Raises:
        ValueError: If *level* or *fmt* is not recognised.
    """
    resolved_level = _pick(
        "LOG_LEVEL", (level or os.environ.get("LOG_LEVEL", "INFO")).upper(), _LEVELS
    )
    resolved_fmt = _pick(
        "LOG_FORMAT", (fmt or os.environ.get("LOG_FORMAT", "text")).lower(), _FORMATS
    )

    root = logging.getLogger()
    root.setLevel(resolved_level)
    if root.handlers and not force:
        return

    root.handlers.clear()
    root.addHandler(_build_handler(resolved_level, resolved_fmt))

    quiet_level = logging.DEBUG if resolved_level == "DEBUG" else logging.WARNING
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)


# ---------------------------------------------------------------------------
# JSON formatter
# ---------------------------------------------------------------------------

#: Attributes every LogRecord carries; anything else came in through ``extra``.
_STANDARD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per line.

    Shape::

        {"ts": "2026-03-01T12:00:00.000Z", "level": "INFO",
         "logger": "proplist.application.use_cases.lifecycle",
         "message": "Property published",
         "extra": {"event": "PROPERTY_PUBLISHED", "request_id": "a3f2b1c0"}}

    ``exc_info`` and ``stack_info`` keys appear only when the record has them.
    Values that are not JSON-native are rendered with ``str``.
    """

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        created = datetime.fromtimestamp(record.created, tz=UTC)
        payload: dict[str, Any] = {
            "ts": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "extra": {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS},
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        elif record.exc_text:
            payload["exc_info"] = record.exc_text
        if record.stack_info:
            payload["stack_info"] = self.formatStack(record.stack_info)
        return json.dumps(payload, default=str)
