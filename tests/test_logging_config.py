"""Tests for logging configuration module."""

from __future__ import annotations

import io
import logging

import pytest

from tapatalk_connect.config import Config, LogLevel
from tapatalk_connect.logging_config import (
    LOGGER_NAME,
    get_logger,
    reset_logging,
    setup_logging,
)


class TestLoggingSetup:
    """Tests for logging setup."""

    def test_setup_logging_creates_handler(self) -> None:
        """Test that setup_logging creates a handler."""
        setup_logging(Config(log_level=LogLevel.DEBUG))

        logger = logging.getLogger(LOGGER_NAME)
        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG
        assert logger.propagate is False

    def test_setup_logging_idempotent(self) -> None:
        """Test that setup_logging is idempotent."""
        config = Config(log_level=LogLevel.DEBUG)

        setup_logging(config)
        setup_logging(config)

        assert len(logging.getLogger(LOGGER_NAME).handlers) == 1

    def test_setup_logging_updates_level(self) -> None:
        """Test that setup_logging updates level on subsequent calls."""
        setup_logging(Config(log_level=LogLevel.DEBUG))
        logger = logging.getLogger(LOGGER_NAME)
        assert logger.level == logging.DEBUG

        setup_logging(Config(log_level=LogLevel.WARNING))
        assert logger.level == logging.WARNING
        assert logger.handlers[0].level == logging.WARNING

    def test_setup_logging_writes_to_stream(self) -> None:
        """Test records are written to the given stream."""
        stream = io.StringIO()
        setup_logging(Config(log_level=LogLevel.INFO), stream=stream)

        get_logger("oauth").info("login started")

        assert "login started" in stream.getvalue()

    def test_http_loggers_quiet_unless_debugging(self) -> None:
        """Test request logs of the HTTP client are hidden above DEBUG."""
        setup_logging(Config(log_level=LogLevel.INFO))
        assert logging.getLogger("httpx").level == logging.WARNING

        setup_logging(Config(log_level=LogLevel.DEBUG))
        assert logging.getLogger("httpx").level == logging.DEBUG


class TestLibraryDefaults:
    """Tests for logging when used as a library."""

    def test_null_handler_only(self) -> None:
        """Test the package logger emits nothing by itself."""
        logger = logging.getLogger(LOGGER_NAME)

        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.NullHandler)
        assert logger.propagate is True

    def test_records_reach_host_handlers(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test records propagate to the application's logging setup."""
        with caplog.at_level(logging.WARNING):
            get_logger("oauth").warning("state mismatch")

        assert "state mismatch" in caplog.text

    def test_reset_restores_library_defaults(self) -> None:
        """Test reset_logging undoes setup_logging."""
        setup_logging(Config(log_level=LogLevel.INFO))

        reset_logging()

        logger = logging.getLogger(LOGGER_NAME)
        assert logger.propagate is True
        assert isinstance(logger.handlers[0], logging.NullHandler)
        assert logging.getLogger("httpx").level == logging.NOTSET


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_returns_child_logger(self) -> None:
        """Test that get_logger returns a child logger."""
        assert get_logger("test_module").name == f"{LOGGER_NAME}.test_module"

    def test_get_logger_with_package_name(self) -> None:
        """Test that get_logger handles full package name."""
        assert get_logger(f"{LOGGER_NAME}.oauth").name == f"{LOGGER_NAME}.oauth"
