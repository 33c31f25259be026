"""Error Hierarchy: typed, categorized exceptions for every client failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - HTTP-level failures keep the parsed response body in response_data
    - Network-level failures carry no structured detail
    - to_result() produces the ApiResult failure envelope {success: False, error, ...}

Design Decisions:
    - Single hierarchy with VenturesClientError base: callers catch one type
      and branch on code when they need to
    - ErrorContext as dataclass: rich observability without coupling to logging
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability and caller handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    EXTERNAL_API = "external_api"
    NETWORK = "network"
    TIMEOUT = "timeout"
    STORAGE = "storage"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Request context attached to an error."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    endpoint: str | None = None
    method: str | None = None
    status_code: int | None = None
    debug_info: dict[str, Any] | None = None


class VenturesClientError(Exception):
    """Base exception for all client errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    @property
    def status_code(self) -> int | None:
        return self.http_status

    @property
    def response_data(self) -> Any:
        return None

    def to_result(self) -> dict:
        """Convert to the ApiResult failure envelope."""
        result: dict[str, Any] = {"success": False, "error": self.message}
        if self.response_data is not None:
            result["detail"] = self.response_data
        if self.http_status is not None:
            result["statusCode"] = self.http_status
        return result


# ─── HTTP Errors ────────────────────────────────────────────────

class ApiRequestError(VenturesClientError):
    """Backend answered with a non-2xx status."""
    def __init__(
        self,
        message: str,
        status_code: int,
        response_data: Any = None,
        is_profile_locked: bool = False,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.status_code = status_code
        super().__init__(
            message, "API_ERROR", _category_for_status(status_code),
            ErrorSeverity.ERROR, ctx, status_code,
        )
        self._response_data = response_data
        self.is_profile_locked = is_profile_locked

    @property
    def response_data(self) -> Any:
        return self._response_data


def _category_for_status(status_code: int) -> ErrorCategory:
    if status_code in (401, 403):
        return ErrorCategory.AUTHENTICATION
    if status_code in (400, 409, 422):
        return ErrorCategory.VALIDATION
    return ErrorCategory.EXTERNAL_API


# ─── Session Errors ─────────────────────────────────────────────

class SessionExpiredError(VenturesClientError):
    """Access token expired and the refresh attempt failed."""
    MESSAGE = "Session expired. Please log in again."

    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            self.MESSAGE, "SESSION_EXPIRED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class NoRefreshTokenError(VenturesClientError):
    """Refresh requested without a refresh token."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "No refresh token available", "NO_REFRESH_TOKEN",
            ErrorCategory.AUTHENTICATION, ErrorSeverity.WARNING, context,
        )


class TokenRefreshError(VenturesClientError):
    """Refresh endpoint rejected the token or returned no access token."""
    def __init__(
        self, status_code: int | None = None, context: ErrorContext | None = None,
    ):
        super().__init__(
            "Failed to refresh token", "TOKEN_REFRESH_FAILED",
            ErrorCategory.AUTHENTICATION, ErrorSeverity.WARNING, context,
            status_code,
        )


# ─── Infrastructure Errors ──────────────────────────────────────

class NetworkError(VenturesClientError):
    """No response reached the client."""
    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        code: str = "NETWORK_ERROR",
        category: ErrorCategory = ErrorCategory.NETWORK,
    ):
        super().__init__(
            message, code, category, ErrorSeverity.CRITICAL, context,
        )


class RequestTimeoutError(NetworkError):
    """Request exceeded the configured timeout."""
    def __init__(self, timeout_seconds: float, context: ErrorContext | None = None):
        super().__init__(
            f"Request timed out after {timeout_seconds}s", context,
            "REQUEST_TIMEOUT", ErrorCategory.TIMEOUT,
        )
        self.timeout_seconds = timeout_seconds


class StorageError(VenturesClientError):
    """Durable key-value store operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Storage {operation} failed: {message}", "STORAGE_ERROR",
            ErrorCategory.STORAGE, ErrorSeverity.CRITICAL, context,
        )
        self.operation = operation
