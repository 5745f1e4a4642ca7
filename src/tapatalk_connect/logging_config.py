"""Logging configuration for Tapatalk Connect.

Imported as a library, the package logger only carries a NullHandler and
propagates to whatever the host application configures. The CLI and the
demo server call ``setup_logging`` to get their own stderr output.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from tapatalk_connect.config import Config

# Package logger name
LOGGER_NAME = "tapatalk_connect"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

# Log every request of the code exchange only when debugging
HTTP_LOGGERS = ("httpx", "httpcore")

_logging_configured = False

logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())


def setup_logging(config: Config, stream: TextIO | None = None) -> None:
    """Configure console logging for the command-line entry points.

    Idempotent: repeated calls only update the level and never
    attach a second handler.

    Args:
        config: Application configuration containing log_level setting
        stream: Output stream, stderr by default
    """
    global _logging_configured

    log_level = getattr(logging, config.log_level.value)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)
    http_level = logging.DEBUG if log_level <= logging.DEBUG else max(log_level, logging.WARNING)
    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)

    if _logging_configured:
        for handler in logger.handlers:
            handler.setLevel(log_level)
        return

    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)

    # The console handler owns output; avoid duplicates via the root logger
    logger.propagate = False

    _logging_configured = True

    logger.debug("Logging configured with level %s", config.log_level.value)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module.

    Args:
        name: Logger name, typically __name__ of the calling module

    Returns:
        Child logger of the package logger
    """
    if name.startswith(LOGGER_NAME):
        return logging.getLogger(name)

    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def reset_logging() -> None:
    """Restore the library defaults.

    Used by tests to allow re-initialization of the logging setup.
    """
    global _logging_configured
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET)
    _logging_configured = False
