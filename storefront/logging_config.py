"""
Storefront Structured Logging
=============================

JSON lines in production, plain text in development. Both formats carry
the storefront context passed through `extra=` (plan, order, user, media
and storage backend), so an order or an upload can be followed across
modules.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from storefront import __version__

SERVICE_NAME = "storefront"

CONTEXT_FIELDS = ("plan_id", "order_id", "user_id", "media_id", "storage_type")

LOG_FORMATS = ("json", "text")

# Libraries that log every request or query at INFO
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "asyncpg": logging.WARNING,
    "aiosqlite": logging.WARNING,
    "multipart": logging.WARNING,
    "cloudinary": logging.INFO,
}


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Context fields set on the record, skipping ones passed as None."""
    return {
        key: getattr(record, key)
        for key in CONTEXT_FIELDS
        if getattr(record, key, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "version": __version__,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(record_context(record))
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Readable lines with the context appended as key=value pairs."""

    def __init__(self):
        super().__init__(
            "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = record_context(record)
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        head, newline, tail = line.partition("\n")
        return f"{head} [{pairs}]{newline}{tail}"


def configure_logging(level: str = "INFO", fmt: str = "json"):
    """
    Install the storefront handler on the root logger.

    Args:
        level: DEBUG, INFO, WARNING or ERROR (unknown names fall back to INFO)
        fmt: "json" or "text" (LOG_FORMAT)

    Raises:
        ValueError: unknown format
    """
    if fmt not in LOG_FORMATS:
        raise ValueError(f"Unknown log format '{fmt}'. Expected one of: {', '.join(LOG_FORMATS)}")

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if fmt == "json" else TextFormatter())
    root.addHandler(handler)

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)
