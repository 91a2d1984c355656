"""Structured JSON logger for confkit.

Each record is written as one JSON object per line, ready for a log
aggregation pipeline.  A version-refresh retry, for example, looks like::

    {"ts": "2026-01-05T09:12:44.120931+00:00", "level": "WARNING",
     "logger": "confkit.pages.refresh", "message": "Version conflict, refreshing",
     "op": "update_page", "page_id": "42", "attempt": 1, "delay_s": 1.0}

Usage::

    from confkit.observability import get_logger

    log = get_logger("confkit.pages.update")
    log.info("page updated", extra={"extra_fields": {"page_id": "42"}})
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any


class StructuredFormatter(logging.Formatter):
    """Render a :class:`logging.LogRecord` as a single-line JSON object.

    Guaranteed keys are ``ts`` (UTC, ISO-8601), ``level``, ``logger`` and
    ``message``.  Fields passed as ``extra={"extra_fields": {...}}`` are
    merged into the top level; ``exception`` and ``stack_info`` appear
    only when the record carries them.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        fields: dict[str, Any] | None = getattr(record, "extra_fields", None)
        if fields:
            entry.update(fields)

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str)


# Names that already carry a StructuredFormatter handler.
_configured_loggers: set[str] = set()


def get_logger(
    name: str = "confkit",
    *,
    level: int | str = logging.DEBUG,
    stream: Any | None = None,
) -> logging.Logger:
    """Return the structured logger called *name*, configuring it once.

    Parameters
    ----------
    name:
        Logger name, ``"confkit"`` or a dotted child such as
        ``"confkit.transport"``.
    level:
        Level applied on first configuration; an ``int`` or a
        case-insensitive level name.
    stream:
        Handler output stream.  Defaults to ``sys.stderr``.

    Returns
    -------
    logging.Logger
        The logger.  Repeated calls never attach a second handler.
    """
    logger = logging.getLogger(name)
    if name in _configured_loggers:
        return logger

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger.setLevel(level)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())
    logger.addHandler(handler)
    logger.propagate = False

    _configured_loggers.add(name)
    return logger
