"""Structured logging for WordMatch.

One JSON object per line on stderr by default. Fields passed through
`extra=` (or bound once with bind()) become top-level keys of the entry.

    WORDMATCH_LOG_LEVEL   DEBUG/INFO/WARNING/ERROR (default INFO)
    WORDMATCH_LOG_FORMAT  json (default) or text
"""
import json
import logging
import os
import sys
from typing import Any

# Attributes lifted from `extra=` into the JSON entry
EXTRA_FIELDS = (
    "component", "detail", "duration_ms", "count", "endpoint", "status_code", "ip", "game_id",
)
TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update(
            (key, getattr(record, key)) for key in EXTRA_FIELDS if getattr(record, key, None) is not None
        )
        if record.exc_info and record.exc_info[1]:
            entry["error"] = str(record.exc_info[1])
            entry["error_type"] = type(record.exc_info[1]).__name__
        return json.dumps(entry, ensure_ascii=False, default=str)


class BoundLogger(logging.LoggerAdapter):
    """Adds fixed fields to every record. Per-call `extra=` wins on conflicts."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def _make_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    if os.environ.get("WORDMATCH_LOG_FORMAT", "json").lower() == "text":
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt="%H:%M:%S"))
    else:
        handler.setFormatter(JSONFormatter())
    return handler


def get_logger(name: str = "wordmatch") -> logging.Logger:
    """Get or create a structured logger.

    Usage:
        from log import get_logger
        logger = get_logger("wordmatch.history")
        logger.info("Translation saved", extra={"component": "history", "count": 1})
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        level = os.environ.get("WORDMATCH_LOG_LEVEL", "INFO").upper()
        logger.setLevel(getattr(logging, level, logging.INFO))
        logger.addHandler(_make_handler())
        logger.propagate = False
    return logger


def bind(logger: logging.Logger, **fields) -> BoundLogger:
    """Logger that stamps `fields` (e.g. game_id) on everything it emits."""
    return BoundLogger(logger, {k: v for k, v in fields.items() if v is not None})
