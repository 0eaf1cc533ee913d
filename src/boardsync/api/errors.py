"""Remote store error taxonomy."""

from __future__ import annotations


class ApiError(Exception):
    """Base exception for remote store errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NetworkError(ApiError):
    """No response received (timeout, connection refused, offline)."""

    pass


class ValidationError(ApiError):
    """Request rejected with field-level validation errors (4xx)."""

    def __init__(
        self,
        message: str,
        status_code: int | None = 400,
        field_errors: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message, status_code)
        self.field_errors = field_errors or {}


class PermissionDeniedError(ApiError):
    """Authentication failed or access denied (401/403)."""

    pass


class NotFoundError(ApiError):
    """Resource not found (404)."""

    pass


class ServerError(ApiError):
    """Server failure (5xx), unexpected status or malformed envelope."""

    pass
