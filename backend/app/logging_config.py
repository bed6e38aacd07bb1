"""
Structured JSON logging.

Every log line is one JSON object on stdout, tagged with a channel (http,
db, store, validation) and, inside an HTTP call, the request ID. A record
write can then be traced to the request that caused it.
"""

import logging
import json
import os
import uuid
from datetime import datetime, timezone
from contextvars import ContextVar

# Empty outside an HTTP request (scripts, tests)
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CHANNELS = ("http", "db", "store", "validation")


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def _channel_of(logger_name: str) -> str:
    return logger_name.rsplit(".", 1)[-1] if logger_name.startswith("app.") else "app"


class StructuredJsonFormatter(logging.Formatter):
    """
    One JSON object per record with keys timestamp (UTC, milliseconds),
    level, message, channel, context (request_id plus business ids such as
    record_id or storage_key), extra (durations, counts) and, when present,
    exception.
    """

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, timezone.utc)
        entry = {
            "timestamp": stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "channel": getattr(record, "channel", None) or _channel_of(record.name),
            "context": {"request_id": request_id_var.get(), **(getattr(record, "context", None) or {})},
            "extra": getattr(record, "extra_data", None) or {},
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging():
    """Send every channel through one stdout handler using the JSON formatter."""
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredJsonFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(_level(LOG_LEVEL))
    root_logger.handlers = [handler]

    for channel in CHANNELS:
        get_logger(channel).setLevel(_level(LOG_LEVEL))

    return root_logger


def get_logger(channel: str) -> logging.Logger:
    return logging.getLogger(f"app.{channel}")


def log_with_context(logger: logging.Logger, level: str, message: str,
                     context: dict = None, extra_data: dict = None):
    """
    Emit a structured entry on a channel logger.

    `context` holds identifiers (record_id, field, storage_key); `extra_data`
    holds measurements (duration_ms, record_count).
    """
    logger.log(
        _level(level),
        message,
        extra={"context": context or {}, "extra_data": extra_data or {}, "channel": _channel_of(logger.name)}
    )


def begin_request() -> str:
    """Assign a fresh request ID to the current context and return it."""
    req_id = str(uuid.uuid4())
    request_id_var.set(req_id)
    return req_id
