"""
ParkDesk - Structured Logging Configuration
===========================================
JSON-formatted structured logging with request context.

Features:
- JSON output for log aggregation
- Request-scoped context (request_id, user_id, endpoint, page)
- Performance tracking (duration_ms)
- Log level and format selection via environment

Usage:
    from parkdesk.logging_config import get_logger, log_event

    logger = get_logger(__name__)
    logger.info("lots_listed", extra={"result_count": 20})

    log_event("bulk_import_completed", successful=9, failed=1)
"""

from __future__ import annotations

import functools
import json
import logging
import os
import sys
import threading
import time
import traceback
import uuid
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from parkdesk.config import settings


class LogLevel(str, Enum):
    """Standard log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# =============================================================================
# Context Variables
# =============================================================================


class LogContext:
    """
    Thread-local storage for request-scoped log context.

    The API middleware fills it per request; Streamlit pages set the
    current page and user so every log line carries them.
    """

    FIELDS = ("request_id", "user_id", "client_ip", "endpoint", "page")

    _local = threading.local()

    @classmethod
    def set(cls, name: str, value: Any) -> None:
        if name not in cls.FIELDS:
            raise KeyError(f"Unknown log context field: {name}")
        setattr(cls._local, name, value)

    @classmethod
    def get(cls, name: str) -> Any:
        return getattr(cls._local, name, None)

    @classmethod
    def set_request_id(cls, request_id: str | None) -> None:
        cls.set("request_id", request_id)

    @classmethod
    def get_request_id(cls) -> str | None:
        return cls.get("request_id")

    @classmethod
    def set_user_id(cls, user_id: str | None) -> None:
        cls.set("user_id", user_id)

    @classmethod
    def set_client_ip(cls, client_ip: str | None) -> None:
        cls.set("client_ip", client_ip)

    @classmethod
    def set_endpoint(cls, endpoint: str | None) -> None:
        cls.set("endpoint", endpoint)

    @classmethod
    def clear(cls) -> None:
        """Clear all context."""
        for name in cls.FIELDS:
            setattr(cls._local, name, None)

    @classmethod
    def get_all(cls) -> dict[str, Any]:
        """Get all context as a dict."""
        return {name: cls.get(name) for name in cls.FIELDS}


# =============================================================================
# JSON Formatter
# =============================================================================


_STANDARD_ATTRS = frozenset(
    {
        "name", "msg", "args", "levelname", "levelno", "pathname",
        "filename", "module", "lineno", "funcName", "created", "msecs",
        "relativeCreated", "thread", "threadName", "processName",
        "process", "getMessage", "exc_info", "exc_text", "stack_info",
        "taskName",
    }
)


def _format_timestamp(created: float) -> str:
    """Format Unix timestamp to ISO 8601 string."""
    return datetime.fromtimestamp(created, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs one JSON object per record with timestamp, level, logger,
    message, request context and every ``extra`` field of the call.
    """

    def __init__(
        self,
        *,
        service_name: str = "parkdesk",
        environment: str = "production",
        include_extra_fields: bool = True,
    ) -> None:
        super().__init__()
        self.service_name = service_name
        self.environment = environment
        self.include_extra_fields = include_extra_fields

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON."""
        log_entry: dict[str, Any] = {
            "timestamp": _format_timestamp(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "environment": self.environment,
        }

        if record.pathname:
            log_entry["file"] = Path(record.pathname).name
            log_entry["line"] = record.lineno
            log_entry["function"] = record.funcName

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": "".join(traceback.format_exception(*record.exc_info)),
            }

        for key, value in LogContext.get_all().items():
            if value is not None:
                log_entry[key] = value

        if self.include_extra_fields:
            for key, value in record.__dict__.items():
                if key not in _STANDARD_ATTRS and not key.startswith("_"):
                    log_entry[key] = value

        return json.dumps(log_entry, default=self._json_serializer, ensure_ascii=False)

    @staticmethod
    def _json_serializer(obj: Any) -> str:
        """Custom JSON serializer for non-serializable objects."""
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, (set, frozenset)):
            return ",".join(sorted(str(v) for v in obj))
        return str(obj)


# =============================================================================
# Console Formatter (human-readable, used in debug mode)
# =============================================================================


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for console output during development."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        level_color = self.LEVEL_COLORS.get(record.levelname, "")
        request_id = LogContext.get_request_id() or "-"
        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        }

        base = (
            f"{level_color}{record.levelname:<8}{self.RESET} "
            f"{_format_timestamp(record.created)} "
            f"[{request_id}] "
            f"{record.name}: "
            f"{record.getMessage()}"
        )
        if extras:
            base += " " + " ".join(f"{k}={v}" for k, v in extras.items())
        if record.exc_info:
            base += "\n" + "".join(traceback.format_exception(*record.exc_info))
        return base


# =============================================================================
# Logger Factory
# =============================================================================


def _get_log_level() -> int:
    """Get log level from environment."""
    level_str = os.environ.get("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_str, logging.INFO)


def _should_use_json() -> bool:
    """Determine if JSON logging should be used."""
    log_format = os.environ.get("LOG_FORMAT", "").lower()
    if log_format == "console":
        return False
    if log_format == "json":
        return True
    return not settings.debug_mode


def _convert_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), logging.INFO)


_loggers: dict[str, logging.Logger] = {}
_configured = False


def configure_logging(
    *,
    level: str | int | None = None,
    service_name: str = "parkdesk",
    environment: str = "production",
    log_format: str | None = None,
) -> None:
    """
    Configure the root logger with structured logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        service_name: Service name for log identification
        environment: Environment label (production, staging, development)
        log_format: Format type ("json" or "console")
    """
    global _configured

    resolved_level = _get_log_level() if level is None else _convert_level(level)
    root = logging.getLogger()
    root.setLevel(resolved_level)
    root.handlers.clear()

    use_json = _should_use_json() if log_format is None else log_format == "json"

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(resolved_level)
    if use_json:
        handler.setFormatter(StructuredFormatter(service_name=service_name, environment=environment))
    else:
        handler.setFormatter(ConsoleFormatter())

    root.addHandler(handler)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the configured structured format.

    Args:
        name: Logger name (usually __name__)
    """
    if not _configured:
        configure_logging()

    if name not in _loggers:
        logger = logging.getLogger(name)
        logger.setLevel(_get_log_level())
        _loggers[name] = logger

    return _loggers[name]


# =============================================================================
# Helper Functions
# =============================================================================


def log_event(
    event_name: str,
    level: str | LogLevel = LogLevel.INFO,
    **extra_fields: Any,
) -> None:
    """
    Log a structured event with additional fields.

    Example:
        log_event("cache_invalidated", prefix="/api/lots", dropped=3)
    """
    logger = get_logger("event")
    level_name = level.value if isinstance(level, LogLevel) else str(level)
    log_func = getattr(logger, level_name.lower(), logger.info)
    log_func(event_name, extra=extra_fields)


def log_error(
    event_name: str,
    exc: Exception | None = None,
    **extra_fields: Any,
) -> None:
    """Log an error event with optional exception info."""
    logger = get_logger("error")
    if exc is not None:
        extra_fields.setdefault("error_type", type(exc).__name__)
        extra_fields.setdefault("error_message", str(exc))
    logger.error(event_name, exc_info=exc is not None, extra=extra_fields)


# =============================================================================
# Decorators
# =============================================================================


def log_execution(
    logger_name: str | None = None,
    *,
    log_exceptions: bool = True,
) -> Callable:
    """
    Decorator to log function execution with timing.

    Example:
        @log_execution(log_exceptions=False)
        def parse_upload(filename: str, data: bytes) -> ParsedUpload:
            ...
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger(logger_name or func.__module__)
            start_time = time.perf_counter()
            extra: dict[str, Any] = {"function": func.__name__}

            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                extra["duration_ms"] = round((time.perf_counter() - start_time) * 1000, 2)
                extra["error_type"] = type(exc).__name__
                extra["error_message"] = str(exc)
                if log_exceptions:
                    logger.error(f"{func.__name__}_failed", extra=extra, exc_info=True)
                else:
                    logger.warning(f"{func.__name__}_failed", extra=extra)
                raise

            extra["duration_ms"] = round((time.perf_counter() - start_time) * 1000, 2)
            logger.info(f"{func.__name__}_completed", extra=extra)
            return result

        return wrapper

    return decorator


# =============================================================================
# Context Managers
# =============================================================================


class LogContextManager:
    """
    Context manager for request-scoped log context.

    Example:
        with LogContextManager(user_id="u-1", page="lots"):
            logger.info("page_rendered")
    """

    def __init__(
        self,
        *,
        request_id: str | None = None,
        user_id: str | None = None,
        endpoint: str | None = None,
        page: str | None = None,
    ) -> None:
        self.request_id = request_id or str(uuid.uuid4())
        self.user_id = user_id
        self.endpoint = endpoint
        self.page = page

    def __enter__(self) -> LogContextManager:
        LogContext.set_request_id(self.request_id)
        LogContext.set_user_id(self.user_id)
        LogContext.set_endpoint(self.endpoint)
        LogContext.set("page", self.page)
        return self

    def __exit__(self, *args: Any) -> None:
        LogContext.clear()


class PerformanceTracker:
    """
    Context manager for tracking operation performance.

    Example:
        with PerformanceTracker("lots_fetch", limit=10000):
            client.list_lots()
    """

    def __init__(self, operation: str, **extra_fields: Any) -> None:
        self.operation = operation
        self.extra = extra_fields
        self._start_time: float | None = None

    def __enter__(self) -> PerformanceTracker:
        self._start_time = time.perf_counter()
        return self

    def __exit__(self, *args: Any) -> None:
        if self._start_time is None:
            return

        self.extra["duration_ms"] = round((time.perf_counter() - self._start_time) * 1000, 2)
        if args[0] is not None:
            self.extra["error"] = str(args[1])
            get_logger("performance").warning(f"{self.operation}_failed", extra=self.extra)
        else:
            get_logger("performance").info(f"{self.operation}_completed", extra=self.extra)


# Auto-configure on import if not already configured
if not _configured:
    configure_logging()
