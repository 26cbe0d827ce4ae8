"""Package-wide logger writing key=value text lines to standard output."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from typing import Any

LOGGER_NAME = "ttrunksdb"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

_LEVEL_NAMES = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
}


def _render(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def _quote(text: str) -> str:
    if text == "" or any(ch in ' ="' or not ch.isprintable() for ch in text):
        return json.dumps(text, ensure_ascii=False)
    return text


class _TextFormatter(logging.Formatter):
    """Formats records as 'time=... level=... msg=... key=value' lines.

    Extra attributes are taken from ``extra={"fields": {...}}``.
    """

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).astimezone()
        parts = [
            f"time={stamp.isoformat(timespec='milliseconds')}",
            f"level={_LEVEL_NAMES.get(record.levelno, record.levelname)}",
            f"msg={_quote(record.getMessage())}",
        ]
        fields = getattr(record, "fields", None) or {}
        parts.extend(f"{key}={_quote(_render(value))}" for key, value in fields.items())
        return " ".join(parts)


class _StdoutHandler(logging.Handler):
    """Writes to whatever ``sys.stdout`` is at the time of emission."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            sys.stdout.write(self.format(record) + "\n")
            sys.stdout.flush()
        except Exception:
            self.handleError(record)


def get_logger() -> logging.Logger:
    """Return the package logger, configured with the text handler."""
    logger = logging.getLogger(LOGGER_NAME)
    if not any(isinstance(handler, _StdoutHandler) for handler in logger.handlers):
        handler = _StdoutHandler()
        handler.setFormatter(_TextFormatter())
        logger.addHandler(handler)
        logger.propagate = False
    if logger.level == logging.NOTSET:
        logger.setLevel(logging.INFO)
    return logger


def init_logger(level: str = "info", debug: bool = False) -> logging.Logger:
    """Set the log level by name ('debug', 'info', 'warn', 'error').

    Unknown names fall back to info; ``debug`` forces the debug level.
    """
    logger = get_logger()
    logger.setLevel(logging.DEBUG if debug else _LEVELS.get(level, logging.INFO))
    return logger