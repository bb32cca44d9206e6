"""
Domain specific exception hierarchy for the moysklad_client package.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence


class MoyskladClientError(Exception):
    """Base exception for all library errors."""


class ConfigurationError(MoyskladClientError):
    """Raised when required configuration or credentials are missing."""


class ApiResponseError(MoyskladClientError):
    """Raised when the MoySklad API returns a non-2xx response."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        code: int | None = None,
        more_info: str | None = None,
        errors: Sequence[Mapping[str, Any]] = (),
    ) -> None:
        super().__init__(message)
        self.status = status
        self.code = code
        self.more_info = more_info
        self.errors = list(errors)


class AuthenticationError(ApiResponseError):
    """Raised on 401/403 responses."""


class NotFoundError(ApiResponseError):
    """Raised when the requested resource does not exist (404)."""


class RateLimitExceeded(ApiResponseError):
    """Raised when throttling persists after every retry attempt."""

    def __init__(
        self,
        message: str,
        *,
        retry_after: float | None = None,
        attempts: int = 0,
        code: int | None = None,
        more_info: str | None = None,
        errors: Sequence[Mapping[str, Any]] = (),
    ) -> None:
        super().__init__(message, status=429, code=code, more_info=more_info, errors=errors)
        self.retry_after = retry_after
        self.attempts = attempts
