"""
Structured logging with correlation IDs and JSON formatting.

Usage:
    logger = logging.getLogger("blueprints.adapters")
    logger.info("Provider registered", extra={
        "provider": "printify",
        "event": "provider_registered",
    })
"""

import json
import logging
import os
import uuid
from collections import deque
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

from pythonjsonlogger import jsonlogger

# Context variable for correlation ID (per-task request tracking)
_correlation_id_ctx: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Attributes every LogRecord has; anything else came in through `extra=`.
_STANDARD_RECORD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context."""
    return _correlation_id_ctx.get()


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return f"req-{uuid.uuid4().hex[:16]}"


class correlation_id_context:
    """Context manager for setting correlation ID."""

    def __init__(self, correlation_id: Optional[str] = None):
        self.correlation_id = correlation_id or generate_correlation_id()
        self.token = None

    def __enter__(self):
        self.token = _correlation_id_ctx.set(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb):
        _correlation_id_ctx.reset(self.token)


class CorrelationIDFilter(logging.Filter):
    """Stamps correlation_id, and a provider placeholder for records that have none."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "none"
        if not getattr(record, "provider", None):
            record.provider = "-"
        return True


class SensitiveDataFilter(logging.Filter):
    """Redacts sensitive data from log records."""

    SENSITIVE_KEYS = {
        "password", "token", "api_key", "apikey", "secret", "authorization",
        "webhook_secret",
    }

    def filter(self, record: logging.LogRecord) -> bool:
        # Redact sensitive data in message args
        if hasattr(record, "args") and record.args:
            record.args = self._redact(record.args)

        # Redact sensitive data in extra fields
        for key in list(record.__dict__.keys()):
            if key.lower() in self.SENSITIVE_KEYS:
                setattr(record, key, "[REDACTED]")
            elif key not in _STANDARD_RECORD_ATTRS:
                setattr(record, key, self._redact(record.__dict__[key]))

        return True

    def _redact(self, data: Any) -> Any:
        """Recursively redact sensitive keys in dictionaries."""
        if isinstance(data, dict):
            return {
                k: "[REDACTED]" if str(k).lower() in self.SENSITIVE_KEYS else self._redact(v)
                for k, v in data.items()
            }
        elif isinstance(data, tuple):
            return tuple(self._redact(item) for item in data)
        elif isinstance(data, list):
            return [self._redact(item) for item in data]
        return data


class BlueprintJsonFormatter(jsonlogger.JsonFormatter):
    """One JSON object per record, keyed for grepping by provider and request."""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        log_record["level"] = record.levelname.lower()
        log_record["logger"] = record.name
        log_record["provider"] = getattr(record, "provider", "-")
        log_record["correlation_id"] = getattr(record, "correlation_id", "none")
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


class RecentLogHandler(logging.Handler):
    """
    Keeps the most recent log entries in memory for the debug panel.

    Entries are plain dicts, newest first. Records carrying a ``provider``
    extra can be filtered per provider.
    """

    def __init__(self, max_entries: int = 1000, level: int = logging.NOTSET):
        super().__init__(level)
        self.max_entries = max_entries
        self._entries: Deque[Dict[str, Any]] = deque(maxlen=max_entries)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry: Dict[str, Any] = {
                "level": record.levelname.lower(),
                "message": record.getMessage(),
                "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
                "logger": record.name,
                "correlation_id": getattr(record, "correlation_id", "none"),
            }
            provider = getattr(record, "provider", None)
            if provider and provider != "-":
                entry["provider"] = provider
            details = {
                key: value
                for key, value in record.__dict__.items()
                if key not in _STANDARD_RECORD_ATTRS and key not in ("provider", "correlation_id")
            }
            if details:
                entry["details"] = details
            if record.exc_info and record.exc_info[1] is not None:
                entry["error"] = repr(record.exc_info[1])
            self._entries.appendleft(entry)
        except Exception:
            self.handleError(record)

    def get_logs(self) -> List[Dict[str, Any]]:
        return list(self._entries)

    def get_provider_logs(self, provider_id: str) -> List[Dict[str, Any]]:
        return [entry for entry in self._entries if entry.get("provider") == provider_id]

    def get_error_logs(self) -> List[Dict[str, Any]]:
        return [entry for entry in self._entries if entry["level"] in ("error", "critical")]

    def clear(self) -> None:
        self._entries.clear()

    def export_json(self) -> str:
        return json.dumps(
            {
                "logs": self.get_logs(),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
            indent=2,
            default=str,
        )


recent_logs = RecentLogHandler()


TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(provider)s | %(correlation_id)s | %(name)s | %(message)s"


def setup_logging(debug: Optional[bool] = None, json_output: Optional[bool] = None) -> None:
    """
    Route every logger through one stream handler plus the recent-log buffer.

    LOG_LEVEL sets the level unless ``debug`` is true, which forces DEBUG.
    BLUEPRINTS_LOG_FORMAT=json switches the stream to JSON lines when
    ``json_output`` is not given. Safe to call again.
    """
    log_level = "DEBUG" if debug else os.getenv("LOG_LEVEL", "INFO").upper()
    if json_output is None:
        json_output = os.getenv("BLUEPRINTS_LOG_FORMAT", "text").lower() == "json"

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    if json_output:
        handler.setFormatter(BlueprintJsonFormatter("%(message)s"))
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    for target in (handler, recent_logs):
        target.filters.clear()
        target.addFilter(CorrelationIDFilter())
        target.addFilter(SensitiveDataFilter())

    root_logger.addHandler(handler)
    root_logger.addHandler(recent_logs)
    root_logger.setLevel(log_level)

    # Per-request lines from the HTTP client duplicate the adapters' own
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
