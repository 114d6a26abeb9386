"""Structured logging helpers."""

from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from typing import Any

from .config import LoggingConfig

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """Format log records as JSON, including ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        # Anything passed through extra= is part of the event.
        for key, value in record.__dict__.items():
            if key not in _RESERVED and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            # Include stack traces when provided.
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(config: LoggingConfig) -> None:
    """Configure root logger."""

    # Map the string level to the logging module value.
    level = getattr(logging, config.level.upper(), logging.INFO)
    handler: logging.Handler
    if config.log_file:
        # File-based logging with rotation.
        handler = RotatingFileHandler(
            config.log_file,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
        )
    else:
        # stdout carries the JSON report, so logs go to stderr.
        handler = logging.StreamHandler()

    if config.json_format:
        # One JSON object per line for machine ingestion.
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s %(message)s"))

    # Initialize root logging configuration.
    logging.basicConfig(level=level, handlers=[handler])
