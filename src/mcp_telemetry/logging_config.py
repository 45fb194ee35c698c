"""Logging configuration for the telemetry engine and its HTTP surface."""

from __future__ import annotations
import json
import logging
import os
import sys
from datetime import UTC, datetime
from typing import Any


_LOGGER_NAMES = (
    "uvicorn",
    "uvicorn.access",
    "uvicorn.error",
    "fastapi",
    "mcp_telemetry",
)

# Attributes present on every LogRecord; anything else came from ``extra=``.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

_TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class JsonLineFormatter(logging.Formatter):
    """Render each record as a single JSON object including extra fields."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D102
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key.startswith("_"):
                continue
            payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _resolve_level(raw: str | None) -> int:
    candidate = (raw or "INFO").strip().upper()
    level = logging.getLevelName(candidate)
    return level if isinstance(level, int) else logging.INFO


def configure_logging() -> None:
    """Apply ``LOG_LEVEL`` and ``LOG_FORMAT`` to the package loggers."""
    level = _resolve_level(os.getenv("LOG_LEVEL"))
    log_format = (os.getenv("LOG_FORMAT") or "text").strip().lower()

    handler = logging.StreamHandler(sys.stderr)
    if log_format == "json":
        handler.setFormatter(JsonLineFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_mcp_telemetry_handler", False):
            root.removeHandler(existing)
    handler._mcp_telemetry_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    if root.level == logging.NOTSET or root.level > level:
        root.setLevel(level)

    for name in _LOGGER_NAMES:
        logging.getLogger(name).setLevel(level)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger, defaulting to the package logger."""
    return logging.getLogger(name or "mcp_telemetry")


configure_logging()


__all__ = ["JsonLineFormatter", "configure_logging", "get_logger"]
