"""Logging configuration for the toolkit.

The toolkit itself only obtains loggers; the embedding service decides whether
to call setup_logging(). Output is one JSON object per line, and calling
setup_logging() more than once never duplicates handlers.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from logging import Handler, LogRecord
from typing import IO, Any

_DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RESERVED = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}

_HANDLER_MARK = "_toolkit_json_handler"


class JsonFormatter(logging.Formatter):
    """Render a record as a single JSON line.

    Core keys are ts, level, logger and message. Structured fields passed via
    `logger.info("upload.saved", extra={...})` are merged in without
    overwriting the core keys.
    """

    def format(self, record: LogRecord) -> str:  # type: ignore[override]
        payload: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
        }

        if isinstance(record.msg, dict):
            payload.update(record.msg)
        else:
            payload["message"] = record.getMessage()

        for key, value in record.__dict__.items():
            if key in _RESERVED or key in payload:
                continue
            payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def _make_stream_handler(level: int, stream: IO[str] | None) -> Handler:
    handler = logging.StreamHandler(stream=stream or sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    setattr(handler, _HANDLER_MARK, True)
    return handler


def setup_logging(level: str | int = _DEFAULT_LEVEL, stream: IO[str] | None = None) -> None:
    """Attach a JSON handler to the ``toolkit`` logger.

    Idempotent: if a JSON handler is already attached only the level changes.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger("toolkit")
    root.setLevel(level)
    for handler in root.handlers:
        if getattr(handler, _HANDLER_MARK, False):
            handler.setLevel(level)
            return

    root.addHandler(_make_stream_handler(level, stream))


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger below the ``toolkit`` namespace.

    Usage: logger = get_logger("service.uploads")
    """
    if not name:
        return logging.getLogger("toolkit")
    if name == "toolkit" or name.startswith("toolkit."):
        return logging.getLogger(name)
    return logging.getLogger(f"toolkit.{name}")
