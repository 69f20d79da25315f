"""Logging setup for Site Assistant.

Log records carry structured fields as ``extra={"ctx_<name>": value}``; the
JSON formatter emits them under ``<name>``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import orjson

LOG_LEVEL_ENV = "SITEA_LOG_LEVEL"
LOG_FORMAT_ENV = "SITEA_LOG_FORMAT"
CONTEXT_PREFIX = "ctx_"

# Chatty at INFO; kept at WARNING unless the root level is DEBUG.
_NOISY_LOGGERS = ("urllib3", "faiss", "multipart")


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key.startswith(CONTEXT_PREFIX):
                payload[key[len(CONTEXT_PREFIX) :]] = value
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return orjson.dumps(payload, default=str).decode("utf-8")


def configure_logging(level: str | int | None = None, fmt: str | None = None) -> None:
    """Install a single stderr handler on the root logger.

    ``fmt`` is ``"json"`` (default) or ``"text"``; both fall back to the
    ``SITEA_LOG_LEVEL`` and ``SITEA_LOG_FORMAT`` environment variables.
    """
    level = level or os.environ.get(LOG_LEVEL_ENV, "INFO")
    fmt = (fmt or os.environ.get(LOG_FORMAT_ENV, "json")).lower()
    handler = logging.StreamHandler(sys.stderr)
    if fmt == "text":
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    else:
        handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]
    logging.captureWarnings(True)
    if root.level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = "site_assistant") -> logging.Logger:
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


__all__ = ["JsonFormatter", "configure_logging", "get_logger"]
