"""Tapatalk Connect.

Login with Tapatalk: authorization redirect, CSRF-protected callback
handling and authorization code exchange.
"""

__version__ = "0.1.0"

from tapatalk_connect.app import TapatalkApp
from tapatalk_connect.config import Config, ConfigError, load_config
from tapatalk_connect.exceptions import (
    CsrfMismatchError,
    CsrfMissingInRequestError,
    CsrfMissingInSessionError,
    CsrfValidationError,
    InvalidAppIdentityError,
    SessionStoreError,
    TapatalkSDKError,
    TokenExchangeError,
)
from tapatalk_connect.oauth.login import TapatalkConnectLogin, create_login_service
from tapatalk_connect.oauth.urls import CallbackRequest

__all__ = [
    "CallbackRequest",
    "Config",
    "ConfigError",
    "CsrfMismatchError",
    "CsrfMissingInRequestError",
    "CsrfMissingInSessionError",
    "CsrfValidationError",
    "InvalidAppIdentityError",
    "SessionStoreError",
    "TapatalkApp",
    "TapatalkConnectLogin",
    "TapatalkSDKError",
    "TokenExchangeError",
    "__version__",
    "create_login_service",
    "load_config",
]
