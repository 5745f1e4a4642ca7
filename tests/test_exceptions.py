"""Tests for Tapatalk Connect exceptions."""

from __future__ import annotations

from tapatalk_connect.exceptions import (
    SessionStoreError,
    TapatalkSDKError,
    TokenExchangeError,
)


class TestTokenExchangeError:
    """Tests for TokenExchangeError."""

    def test_with_status_code(self) -> None:
        """Test string form includes the status code."""
        error = TokenExchangeError("Token exchange failed", status_code=400, response_body="bad")

        assert str(error) == "[400] Token exchange failed"
        assert error.status_code == 400
        assert error.response_body == "bad"

    def test_without_status_code(self) -> None:
        """Test string form without a status code."""
        error = TokenExchangeError("Token endpoint is not configured")

        assert str(error) == "Token endpoint is not configured"
        assert error.status_code is None
        assert error.response_body is None


class TestHierarchy:
    """Tests for the exception hierarchy."""

    def test_all_derive_from_sdk_error(self) -> None:
        """Test every error can be caught as TapatalkSDKError."""
        assert issubclass(TokenExchangeError, TapatalkSDKError)
        assert issubclass(SessionStoreError, TapatalkSDKError)
