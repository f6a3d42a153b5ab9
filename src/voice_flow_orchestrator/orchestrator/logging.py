"""Structured logging configuration.

Records are emitted as one JSON object per line. Fields passed through
`extra={...}` land under `"extra"`; fields bound with :func:`log_context` for
the duration of a webhook or CLI command land under `"context"` on every
record emitted inside that block, including records from the graph and action
layers.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

# Attributes every LogRecord carries; anything else on a record came from `extra`.
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}

_NOISY_LOGGERS = ("neo4j", "httpx", "httpcore", "openai", "anthropic")

_SECRET_FIELDS = frozenset({"api_key", "token", "password", "authorization"})

_context: ContextVar[dict[str, Any]] = ContextVar("voice_flow_log_context", default={})


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Bind fields to every record logged inside the block.

    Nested blocks add to (and may override) the enclosing fields.
    """

    token = _context.set({**_context.get(), **fields})
    try:
        yield
    finally:
        _context.reset(token)


def current_log_context() -> dict[str, Any]:
    return dict(_context.get())


def _scrub(fields: dict[str, Any]) -> dict[str, Any]:
    return {
        key: "***" if key.lower() in _SECRET_FIELDS and value else value
        for key, value in fields.items()
    }


class JsonFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = _context.get()
        if context:
            payload["context"] = _scrub(context)

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        }
        if extra:
            payload["extra"] = _scrub(extra)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: str) -> None:
    """Send all records to stdout as JSON at the given level."""

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)
    root.setLevel(level.upper())

    # Driver and HTTP client debug output drowns the call logs.
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(root.level, logging.INFO))
