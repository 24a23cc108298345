"""Logging helpers shared by the CLI and the HTTP app."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any

__all__ = [
    "JsonLogFormatter",
    "configure_logging",
]

ROOT_LOGGER = "mcqgen"


class JsonLogFormatter(logging.Formatter):
    """Emit log records as structured JSON lines."""

    _RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = {
            key: _coerce_value(value)
            for key, value in record.__dict__.items()
            if key not in self._RESERVED
        }
        if extras:
            payload["extra"] = extras
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def configure_logging(level: str = "INFO", *, stream: IO[str] | None = None) -> logging.Logger:
    """Attach a single JSON stderr handler to the `mcqgen` logger.

    Safe to call more than once; the managed handler is replaced, never duplicated.
    """

    logger = logging.getLogger(ROOT_LOGGER)
    logger.propagate = False
    logger.setLevel(_coerce_level(level))

    for existing in list(logger.handlers):
        if getattr(existing, "_mcqgen_managed", False):
            logger.removeHandler(existing)

    handler = logging.StreamHandler(stream=stream or sys.stderr)
    handler.setFormatter(JsonLogFormatter())
    handler._mcqgen_managed = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger


def _coerce_level(level: str) -> int:
    numeric = logging.getLevelName(level.upper())
    if isinstance(numeric, int):
        return numeric
    return logging.INFO


def _coerce_value(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, dict):
        return {str(key): _coerce_value(val) for key, val in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_coerce_value(item) for item in value]
    return repr(value)
