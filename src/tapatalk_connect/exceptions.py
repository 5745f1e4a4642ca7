"""Tapatalk Connect exceptions."""

from __future__ import annotations


class TapatalkSDKError(Exception):
    """Base exception for Tapatalk Connect errors."""


class InvalidAppIdentityError(TapatalkSDKError, TypeError):
    """Raised when an application identity is constructed with a bad client id."""


class CsrfValidationError(TapatalkSDKError):
    """Raised when the callback fails cross-site request forgery validation."""


class CsrfMissingInRequestError(CsrfValidationError):
    """Raised when the callback request carries no ``state`` parameter."""

    def __init__(
        self,
        message: str = (
            'Cross-site request forgery validation failed. '
            'Required GET param "state" missing.'
        ),
    ) -> None:
        super().__init__(message)


class CsrfMissingInSessionError(CsrfValidationError):
    """Raised when no ``state`` value is persisted for the session."""

    def __init__(
        self,
        message: str = (
            'Cross-site request forgery validation failed. '
            'Required param "state" missing from persistent data.'
        ),
    ) -> None:
        super().__init__(message)


class CsrfMismatchError(CsrfValidationError):
    """Raised when the request and session ``state`` values differ."""

    def __init__(
        self,
        message: str = (
            'Cross-site request forgery validation failed. '
            'The "state" param from the URL and session do not match.'
        ),
    ) -> None:
        super().__init__(message)


class TokenExchangeError(TapatalkSDKError):
    """Raised when the authorization code cannot be exchanged.

    Attributes:
        message: Human-readable error message
        status_code: HTTP status code (if applicable)
        response_body: Raw response body (if available)
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_body = response_body

    def __str__(self) -> str:
        if self.status_code:
            return f"[{self.status_code}] {self.message}"
        return self.message


class SessionStoreError(TapatalkSDKError):
    """Error during session storage operations."""
