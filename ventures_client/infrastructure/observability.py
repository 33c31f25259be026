"""Structured Logging: JSON formatter and setup for client observability.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (endpoint, method, status_code, ...) surfaced when present
    - Tokens and passwords are never passed as extra fields
    - JSON format by default, human-readable on request

Design Decisions:
    - JSONFormatter on the stdlib logging module: no logging dependency to install
    - setup_logging called once by the composition root (client_session.py)
"""

import json
import logging
from datetime import datetime, timezone

_EXTRA_FIELDS = (
    "endpoint", "method", "status_code", "attempt",
    "request_key", "error_code", "storage_key",
)


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Configure the package logger. Safe to call more than once."""
    root = logging.getLogger("ventures_client")
    for existing in list(root.handlers):
        if getattr(existing, "_ventures_handler", False):
            root.removeHandler(existing)
    handler = logging.StreamHandler()
    handler._ventures_handler = True  # type: ignore[attr-defined]
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
