"""
Logging Utility - Structured JSON Logging

Provides centralized, structured logging configuration for all backend components.
Supports JSON format for production and human-readable format for development.

Usage:
    from inbox_cron.utils.logging import setup_logging

    setup_logging(level="INFO", format_type="json")
    logger = logging.getLogger(__name__)
    logger.info("Batch completed", extra={"success_count": 2, "failure_count": 1})
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any

import orjson

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes present on every LogRecord; anything else came in through `extra`
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON line, including `extra` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return orjson.dumps(payload, default=str).decode("utf-8")


def setup_logging(
    level: str = "INFO",
    format_type: str = "json",
    output: str = "stdout",
) -> None:
    """Configure application-wide logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Log format ('json' or 'text')
        output: Log output ('stdout' or 'stderr')

    Raises:
        ValueError: If format_type or output is not recognised
    """
    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    elif format_type == "text":
        formatter = logging.Formatter(TEXT_FORMAT)
    else:
        raise ValueError(f"Unknown log format: {format_type}")

    if output == "stdout":
        stream = sys.stdout
    elif output == "stderr":
        stream = sys.stderr
    else:
        raise ValueError(f"Unknown log output: {output}")

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[handler],
        force=True,
    )
