"""
Observability utilities for API request tracking.

Provides request ID generation and middleware for logging correlation
with structured JSON logging.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from contextvars import ContextVar
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from parkdesk.api.middleware import get_client_ip
from parkdesk.exceptions import ParkDeskError, handle_exception
from parkdesk.logging_config import LogContext, PerformanceTracker, get_logger

# Context variables for request-scoped data (async-safe)
_request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
_request_start_ctx: ContextVar[float | None] = ContextVar("request_start", default=None)

SENSITIVE_PARAMS = {"api_key", "token", "password", "secret", "auth"}

logger = get_logger(__name__)


def generate_request_id() -> str:
    return str(uuid.uuid4())


def get_request_id() -> str | None:
    """Get the current request ID from context."""
    return _request_id_ctx.get()


def sanitize_query(query: str) -> str:
    """Redact sensitive query parameter values for logging."""
    sanitized = []
    for part in query.split("&"):
        if "=" in part:
            key, _ = part.split("=", 1)
            if key.lower() in SENSITIVE_PARAMS:
                sanitized.append(f"{key}=***REDACTED***")
                continue
        sanitized.append(part)
    return "&".join(sanitized)


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """
    Request ID tracking, timing and structured request logs.

    Uses the caller's ``X-Request-ID`` when present and echoes it back on
    every response. Requests slower than ``slow_request_threshold_ms`` log
    at WARNING.
    """

    def __init__(self, app: ASGIApp, *, slow_request_threshold_ms: float = 1000.0) -> None:
        super().__init__(app)
        self._logger = get_logger(__name__)
        self.slow_request_threshold_ms = slow_request_threshold_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or generate_request_id()
        client_ip = get_client_ip(request)

        _request_id_ctx.set(request_id)
        _request_start_ctx.set(time.perf_counter())

        LogContext.set_request_id(request_id)
        LogContext.set_client_ip(client_ip)
        LogContext.set_user_id(None)
        LogContext.set_endpoint(str(request.url.path))

        request_meta: dict[str, Any] = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "client_ip": client_ip,
            "user_agent": request.headers.get("user-agent"),
        }
        if request.url.query:
            request_meta["query_params"] = sanitize_query(str(request.url.query))
        self._logger.info("request_started", extra=request_meta)

        with PerformanceTracker("api_request", endpoint=f"{request.method} {request.url.path}", request_id=request_id):
            try:
                response = await call_next(request)
            except Exception as exc:
                start_time = _request_start_ctx.get()
                duration_ms = (time.perf_counter() - start_time) * 1000 if start_time else 0
                error_meta: dict[str, Any] = {
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "error_type": type(exc).__name__,
                    "error_message": str(exc),
                    "duration_ms": round(duration_ms, 2),
                }
                if isinstance(exc, ParkDeskError):
                    exc.request_id = request_id
                    exc.log()
                else:
                    error_meta["error_detail"] = handle_exception(exc, request_id=request_id).get("detail")
                    self._logger.error("request_failed", extra=error_meta, exc_info=True)
                raise

        start_time = _request_start_ctx.get()
        duration_ms = (time.perf_counter() - start_time) * 1000 if start_time else 0
        response.headers["X-Request-ID"] = request_id

        response_meta: dict[str, Any] = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(duration_ms, 2),
        }
        if hasattr(request.state, "result_count"):
            response_meta["result_count"] = request.state.result_count

        if duration_ms >= self.slow_request_threshold_ms:
            response_meta["slow_request"] = True
            self._logger.warning("request_completed_slow", extra=response_meta)
        else:
            self._logger.info("request_completed", extra=response_meta)
        return response
