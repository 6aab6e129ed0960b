"""
Centralized exception hierarchy for ParkDesk.

Provides specific exception types for the failure scopes the console deals
with: local parse/validation problems, backend request failures and access
checks. Every error carries a machine-readable code and can render itself
as the stable API error envelope.
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from typing import Any

logger = logging.getLogger(__name__)


# =============================================================================
# Base Exception
# =============================================================================


class ParkDeskError(RuntimeError):
    """
    Base exception for all ParkDesk errors.

    Attributes:
        message: Human-readable error message.
        detail: Additional error details (optional).
        error_code: Machine-readable error code.
        request_id: Unique identifier for the request (optional).
    """

    def __init__(
        self,
        message: str,
        *,
        detail: str | None = None,
        error_code: str | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.error_code = error_code or self._default_error_code()
        self.request_id = request_id or self._generate_request_id()

    def _default_error_code(self) -> str:
        """Generate default error code from class name."""
        return f"parkdesk_{self.__class__.__name__.lower()}"

    def _generate_request_id(self) -> str:
        """Generate request ID if not provided."""
        return str(uuid.uuid4())

    @property
    def user_message(self) -> str:
        """Text suitable for an inline error or toast."""
        return str(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response format."""
        result = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.detail:
            result["detail"] = self.detail
        if self.request_id:
            result["request_id"] = self.request_id
        return result

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message

    def log(self, level: int = logging.ERROR) -> None:
        """Log the exception with structured data."""
        logger.log(
            level,
            self.message,
            extra={
                "error_code": self.error_code,
                "detail": self.detail,
                "request_id": self.request_id,
                "exception_type": self.__class__.__name__,
            },
        )


# =============================================================================
# Input Validation Errors
# =============================================================================


class ValidationError(ParkDeskError):
    """
    Raised when input validation fails.

    HTTP Status: 400 Bad Request
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        detail: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.field = field
        full_message = f"{field}: {message}" if field else message
        super().__init__(
            full_message,
            detail=detail,
            error_code="validation_error",
            request_id=request_id,
        )


class MissingMappingError(ValidationError):
    """Raised when required import fields are not mapped to a source column."""

    def __init__(
        self,
        missing: list[str],
        *,
        request_id: str | None = None,
    ) -> None:
        self.missing = list(missing)
        super().__init__(
            message="Missing required mappings",
            detail="Please map: " + ", ".join(self.missing),
            request_id=request_id,
        )
        self.error_code = "missing_required_mappings"


class UnsupportedFileError(ValidationError):
    """Raised when an upload is not a CSV or Excel file."""

    def __init__(
        self,
        filename: str,
        *,
        request_id: str | None = None,
    ) -> None:
        self.filename = filename
        super().__init__(
            message="Unsupported file format",
            detail="Please upload a CSV or Excel file",
            request_id=request_id,
        )
        self.error_code = "unsupported_file"


class FileParseError(ValidationError):
    """Raised when an upload cannot be read as the format its extension claims."""

    def __init__(
        self,
        message: str,
        *,
        filename: str | None = None,
        detail: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.filename = filename
        super().__init__(message, detail=detail, request_id=request_id)
        self.error_code = "file_parse_error"


class FileTooLargeError(ValidationError):
    """Raised when an upload exceeds the configured size limit."""

    def __init__(
        self,
        size_bytes: int,
        limit_bytes: int,
        *,
        request_id: str | None = None,
    ) -> None:
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        super().__init__(
            message="File too large",
            detail=f"{size_bytes} bytes exceeds the {limit_bytes // (1024 * 1024)}MB limit",
            request_id=request_id,
        )
        self.error_code = "file_too_large"


class InvalidStateError(ParkDeskError):
    """Raised when a workflow step is invoked out of order."""

    def __init__(
        self,
        action: str,
        state: str,
        *,
        request_id: str | None = None,
    ) -> None:
        self.action = action
        self.state = state
        super().__init__(
            f"Cannot {action} while in {state} step",
            error_code="invalid_state",
            request_id=request_id,
        )


# =============================================================================
# Not Found Errors
# =============================================================================


class NotFoundError(ParkDeskError):
    """
    Raised when a requested resource is not found.

    HTTP Status: 404 Not Found
    """

    def __init__(
        self,
        message: str,
        *,
        resource_type: str | None = None,
        resource_id: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        detail = None
        if resource_type and resource_id:
            detail = f"{resource_type} with ID {resource_id!r} not found"
        super().__init__(
            message,
            detail=detail,
            error_code="not_found",
            request_id=request_id,
        )


# =============================================================================
# Access Errors
# =============================================================================


class AuthenticationRequiredError(ParkDeskError):
    """
    Raised when a guarded page is opened without a signed-in user.

    HTTP Status: 401 Unauthorized
    """

    def __init__(self, *, request_id: str | None = None) -> None:
        super().__init__(
            "Sign in required",
            error_code="authentication_required",
            request_id=request_id,
        )


class PermissionDeniedError(ParkDeskError):
    """
    Raised when the signed-in user's role may not open a page.

    HTTP Status: 403 Forbidden
    """

    def __init__(
        self,
        role: str | None,
        *,
        resource: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.role = role
        self.resource = resource
        detail = f"Role {role!r} may not access {resource!r}" if resource else None
        super().__init__(
            "Permission denied",
            detail=detail,
            error_code="permission_denied",
            request_id=request_id,
        )


# =============================================================================
# External API Errors
# =============================================================================


_STATUS_PREFIX = re.compile(r"^\d+: (.+)", re.DOTALL)


def extract_error_message(raw: str) -> str:
    """
    Pull a human-readable message out of a ``"<status>: <body>"`` error string.

    The body is tried as JSON first (``message``, then ``errors``, then
    ``error``); anything else is returned as text.
    """
    raw = str(raw or "")
    match = _STATUS_PREFIX.match(raw)
    if not match:
        return raw
    body = match.group(1)
    try:
        payload = json.loads(body)
    except (ValueError, TypeError):
        return body
    if isinstance(payload, dict):
        if payload.get("message"):
            return str(payload["message"])
        if payload.get("errors"):
            return "Validation errors: " + json.dumps(payload["errors"], separators=(",", ":"), ensure_ascii=False)
        if payload.get("error"):
            return str(payload["error"])
    return body


class ExternalAPIError(ParkDeskError):
    """
    Base class for backend request errors.

    HTTP Status: 502 Bad Gateway or 503 Service Unavailable
    """

    def __init__(
        self,
        message: str,
        *,
        service: str | None = None,
        status_code: int | None = None,
        request_id: str | None = None,
    ) -> None:
        self.service = service
        self.status_code = status_code
        detail_parts = []
        if service:
            detail_parts.append(f"Service: {service}")
        if status_code:
            detail_parts.append(f"Status: {status_code}")
        detail = "; ".join(detail_parts) if detail_parts else None
        super().__init__(
            message,
            detail=detail,
            error_code="external_api_error",
            request_id=request_id,
        )


class APIRequestError(ExternalAPIError):
    """Raised when the backend answers with a non-2xx status."""

    def __init__(
        self,
        status_code: int,
        body: str,
        *,
        method: str | None = None,
        path: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.raw_message = f"{status_code}: {body}"
        self.method = method
        self.path = path
        super().__init__(
            extract_error_message(self.raw_message),
            service="backend",
            status_code=status_code,
            request_id=request_id,
        )
        self.error_code = "api_request_error"

    @property
    def user_message(self) -> str:
        return self.message


class APITimeoutError(ExternalAPIError):
    """Raised when a backend request times out."""

    def __init__(
        self,
        service: str,
        *,
        timeout_seconds: float | None = None,
        request_id: str | None = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        detail = f"Timeout after {timeout_seconds}s" if timeout_seconds else None
        super().__init__(
            message=f"Request to {service} timed out",
            service=service,
            request_id=request_id,
        )
        self.error_code = "api_timeout"
        if detail:
            self.detail = detail


class APIConnectionError(ExternalAPIError):
    """Raised when the backend cannot be reached."""

    def __init__(
        self,
        service: str,
        *,
        reason: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.reason = reason
        super().__init__(
            message=f"Connection to {service} failed",
            service=service,
            request_id=request_id,
        )
        self.error_code = "api_connection_error"
        self.detail = reason if reason else "Could not establish connection"


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(ParkDeskError):
    """
    Raised when configuration is invalid or missing.

    HTTP Status: 500 Internal Server Error
    """

    def __init__(
        self,
        message: str,
        *,
        setting: str | None = None,
        request_id: str | None = None,
    ) -> None:
        self.setting = setting
        detail = f"Setting: {setting}" if setting else None
        super().__init__(
            message,
            detail=detail,
            error_code="configuration_error",
            request_id=request_id,
        )


# =============================================================================
# HTTP Exception Helpers
# =============================================================================


def exception_to_http_status(exc: ParkDeskError) -> int:
    """
    Map exception to appropriate HTTP status code.

    Args:
        exc: The exception to map.

    Returns:
        HTTP status code.
    """
    status_map = {
        FileTooLargeError: 413,
        ValidationError: 400,
        InvalidStateError: 409,
        NotFoundError: 404,
        AuthenticationRequiredError: 401,
        PermissionDeniedError: 403,
        APITimeoutError: 504,
        APIConnectionError: 503,
        ExternalAPIError: 502,
        ConfigurationError: 500,
    }

    # Backend 4xx answers are the caller's problem and keep their status.
    if isinstance(exc, APIRequestError) and 400 <= exc.status_code < 500:
        return exc.status_code

    for exc_class, status in status_map.items():
        if isinstance(exc, exc_class):
            return status
    return 500


# =============================================================================
# Exception Handler for FastAPI
# =============================================================================


def handle_exception(exc: Exception, request_id: str | None = None) -> dict[str, Any]:
    """
    Convert any exception to standardized error response.

    Args:
        exc: The exception to handle.
        request_id: Request ID for tracing.

    Returns:
        Dictionary with error details.
    """
    if isinstance(exc, ParkDeskError):
        exc.request_id = request_id or exc.request_id
        return exc.to_dict()

    # Handle standard library exceptions
    if isinstance(exc, ValueError):
        return ValidationError(str(exc), request_id=request_id).to_dict()
    if isinstance(exc, KeyError):
        return ValidationError("Missing required field", field=str(exc), request_id=request_id).to_dict()
    if isinstance(exc, FileNotFoundError):
        return NotFoundError("Resource not found", request_id=request_id).to_dict()
    if isinstance(exc, PermissionError):
        return PermissionDeniedError(None, request_id=request_id).to_dict()
    if isinstance(exc, TimeoutError):
        return APITimeoutError("unknown", request_id=request_id).to_dict()
    if isinstance(exc, ConnectionError):
        return APIConnectionError("unknown", reason=str(exc), request_id=request_id).to_dict()

    # Generic error
    logger.error(
        "Unhandled exception",
        extra={
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
            "request_id": request_id,
        },
        exc_info=True,
    )
    return ParkDeskError(
        "An unexpected error occurred",
        detail=str(exc) if __debug__ else None,
        request_id=request_id,
    ).to_dict()
