"""Logging configuration for the Storefront API.

Wraps stdlib logging with:
- one-time configuration (level, human or JSON output, optional file)
- a contextvars-backed request context (correlation id, operation, ...)
  injected into every record by a filter

Usage:
    from storefront.logging_config import get_logger, set_context

    logger = get_logger(__name__)
    set_context(correlation_id="abc123")
    logger.info("Order updated", extra={"order_id": str(order.id)})
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_log_context: ContextVar[Dict[str, Any]] = ContextVar("storefront_log_context", default={})

_configured = False

# Attributes present on every LogRecord; anything else came in through `extra`
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "context"}


def set_context(**kwargs: Any) -> None:
    """Add fields to the logging context of the current task."""
    ctx = dict(_log_context.get())
    ctx.update(kwargs)
    _log_context.set(ctx)


def clear_context() -> None:
    """Remove all fields from the logging context of the current task."""
    _log_context.set({})


def get_context() -> Dict[str, Any]:
    return dict(_log_context.get())


class LogContext:
    """Context manager that scopes extra logging fields to a block.

    Example:
        with LogContext(operation="export_orders", format="csv"):
            logger.info("Export started")
    """

    def __init__(self, **kwargs: Any):
        self.fields = kwargs
        self._token = None

    def __enter__(self) -> "LogContext":
        ctx = dict(_log_context.get())
        ctx.update(self.fields)
        self._token = _log_context.set(ctx)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._token is not None:
            _log_context.reset(self._token)


class ContextFilter(logging.Filter):
    """Attach the current logging context to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.context = _log_context.get()
        return True


class JSONFormatter(logging.Formatter):
    """Render records as single-line JSON documents."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(getattr(record, "context", {}) or {})

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


class HumanFormatter(logging.Formatter):
    """Readable single-line format with context fields appended."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, "context", {}) or {}
        if context:
            fields = " ".join(f"{k}={v}" for k, v in context.items())
            line = f"{line} [{fields}]"
        return line


def configure_logging(
    level: Optional[str] = None,
    json_output: Optional[bool] = None,
    log_file: Optional[str] = None,
) -> None:
    """Configure the root logger once.

    Args:
        level: Log level name (defaults to LOG_LEVEL or INFO)
        json_output: Emit JSON lines (defaults to LOG_FORMAT == "json")
        log_file: Optional file to log to in addition to stderr
    """
    global _configured

    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if json_output is None:
        json_output = os.getenv("LOG_FORMAT", "human").lower() == "json"
    log_file = log_file or os.getenv("LOG_FILE")

    formatter: logging.Formatter = JSONFormatter() if json_output else HumanFormatter()
    context_filter = ContextFilter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        root.addHandler(handler)
    root.setLevel(level)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger, configuring logging with defaults on first use."""
    if not _configured:
        configure_logging()
    return logging.getLogger(name)
