"""Structured logging configuration for the KeyCRM sync service.

This module provides JSON-formatted logging suitable for production environments
and log aggregation systems (ELK, CloudWatch, etc.), plus a pretty formatter
for local development.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any


# Fields copied from `extra={...}` into JSON log lines
EXTRA_FIELDS = ("event", "order_id", "status", "error_code", "status_code", "duration_ms")


class JSONFormatter(logging.Formatter):
    """Format log records as JSON for structured logging."""

    def __init__(
        self,
        *,
        include_timestamp: bool = True,
        include_level: bool = True,
        include_logger: bool = True,
        include_path: bool = False,
        extra_fields: dict[str, Any] | None = None,
    ):
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_level = include_level
        self.include_logger = include_logger
        self.include_path = include_path
        self.extra_fields = extra_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as a JSON string."""
        log_data: dict[str, Any] = {}

        if self.include_timestamp:
            log_data["timestamp"] = datetime.now(UTC).isoformat()

        if self.include_level:
            log_data["level"] = record.levelname

        if self.include_logger:
            log_data["logger"] = record.name

        log_data["message"] = record.getMessage()

        if self.include_path:
            log_data["path"] = f"{record.pathname}:{record.lineno}"
            log_data["function"] = record.funcName

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key in EXTRA_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        log_data.update(self.extra_fields)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class PrettyFormatter(logging.Formatter):
    """Human-readable formatter for development/debugging."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with colors and structured info."""
        color = self.COLORS.get(record.levelname, "")
        reset = self.RESET

        timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
        level = f"{color}{record.levelname:8}{reset}"
        logger_name = record.name[:20].ljust(20)
        message = record.getMessage()

        output = f"{timestamp} | {level} | {logger_name} | {message}"

        if record.exc_info:
            output += f"\n{self.formatException(record.exc_info)}"

        return output


def setup_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    include_path: bool = False,
    service_name: str = "keycrm-sync",
) -> None:
    """Configure logging for the application.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON format (True) or pretty format (False)
        include_path: Include source file path in logs
        service_name: Service name to include in JSON logs
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)

    if json_format:
        formatter = JSONFormatter(
            include_path=include_path,
            extra_fields={"service": service_name},
        )
    else:
        formatter = PrettyFormatter()

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # The debug sink is switched by KEYCRM_DEBUG_MODE, not by the root level
    logging.getLogger(DEBUG_LOGGER_NAME).setLevel(logging.INFO)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


DEBUG_LOGGER_NAME = "keycrm.debug"


def get_debug_logger() -> logging.Logger:
    """Diagnostic sink for wire-level KeyCRM traffic."""
    return logging.getLogger(DEBUG_LOGGER_NAME)


LOG_EVENT_TITLES: dict[str, str] = {
    "sync_attempt": "🔄 KeyCRM: синхронізація замовлення",
    "sync_skipped": "⏭️ KeyCRM: замовлення пропущено",
    "sync_missing": "👻 KeyCRM: замовлення не знайдено",
    "sync_succeeded": "✅ KeyCRM: замовлення синхронізовано",
    "sync_failed": "❌ KeyCRM: синхронізація не вдалася",
    "record_failed": "💥 KeyCRM: не вдалося записати результат",
    "webhook_received": "📩 WooCommerce: webhook отримано",
    "webhook_rejected": "⛔ WooCommerce: підпис webhook невірний",
}


def log_event(
    logger: logging.Logger,
    *,
    event: str,
    level: str | None = None,
    **kwargs: Any,
) -> None:
    """Structured event logging helper with emoji formatting.

    Formats log messages with emoji titles from LOG_EVENT_TITLES and appends
    the context fields, e.g.:
        ❌ KeyCRM: синхронізація не вдалася | order_id=1042 | error_code=api_error

    Args:
        logger: Logger instance to use
        event: Event name (key in LOG_EVENT_TITLES)
        level: Log level (debug, info, warning, error, critical)
        **kwargs: Additional context fields (order_id, error_code, ...)
    """
    lvl = (level or "info").lower()
    log_fn = getattr(logger, lvl, logger.info)

    title = LOG_EVENT_TITLES.get(event, event)
    parts = [title]
    for key, value in kwargs.items():
        if value is None:
            continue
        parts.append(f"{key}={safe_preview(value)}")

    log_fn(" | ".join(parts), extra={"event": event, **kwargs})


def safe_preview(value: Any, max_len: int = 120) -> str:
    """Return a safe string preview of value."""
    if value is None:
        return ""
    text = str(value)
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
