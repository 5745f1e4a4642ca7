"""OAuth login module for Tapatalk Connect.

Provides the login redirect flow with CSRF protection and the
session and random-source collaborators it depends on.
"""

from tapatalk_connect.oauth.login import TapatalkConnectLogin, create_login_service
from tapatalk_connect.oauth.session import (
    EncryptedFileSessionStore,
    InMemorySessionStore,
    PendingLogins,
    SessionStore,
    create_session_store,
)
from tapatalk_connect.oauth.state import (
    RandomStringGenerator,
    SecretsRandomStringGenerator,
    UrandomRandomStringGenerator,
)
from tapatalk_connect.oauth.urls import CallbackRequest, remove_params_from_url

__all__ = [
    "CallbackRequest",
    "EncryptedFileSessionStore",
    "InMemorySessionStore",
    "PendingLogins",
    "RandomStringGenerator",
    "SecretsRandomStringGenerator",
    "SessionStore",
    "TapatalkConnectLogin",
    "UrandomRandomStringGenerator",
    "create_login_service",
    "create_session_store",
    "remove_params_from_url",
]
