"""Structured logging for the curriculum core.

Modules log event-style messages (``"progression_suggested"``) and attach
context through :func:`log_context`, which prefixes keys with ``ctx_`` so the
formatter can lift them into a ``context`` object.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

CONTEXT_PREFIX = "ctx_"


class JSONFormatter(logging.Formatter):
    """Render each record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
            }
        context = {
            key[len(CONTEXT_PREFIX):]: value
            for key, value in record.__dict__.items()
            if key.startswith(CONTEXT_PREFIX)
        }
        if context:
            entry["context"] = context
        return json.dumps(entry, default=str)


def log_context(**fields: Any) -> dict[str, Any]:
    """Build an ``extra=`` mapping whose keys the JSON formatter recognises."""
    return {f"{CONTEXT_PREFIX}{key}": value for key, value in fields.items()}


def setup_logging(level: str = "INFO") -> None:
    """Configure JSON logging to stdout. Calling it again is a no-op."""
    root = logging.getLogger()
    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if root.level > logging.DEBUG:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
