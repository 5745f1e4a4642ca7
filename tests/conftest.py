"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest

from tapatalk_connect.app import TapatalkApp
from tapatalk_connect.config import Config, Environment, LogLevel
from tapatalk_connect.logging_config import reset_logging
from tapatalk_connect.oauth.login import TapatalkConnectLogin
from tapatalk_connect.oauth.session import InMemorySessionStore
from tapatalk_connect.oauth.state import RandomStringGenerator

TOKEN_URL = "https://auth.example.com/token"
REDIRECT_URL = "https://app.example.com/cb"


class SequenceRandomStringGenerator(RandomStringGenerator):
    """Deterministic generator returning "aa..", "bb..", ... per call."""

    def __init__(self) -> None:
        self.calls = 0

    def get_random_string(self, length: int) -> str:
        char = "abcdef"[self.calls % 6]
        self.calls += 1
        return char * (length * 2)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host TAPATALK_CONNECT_* variables out of the tests."""
    for key in list(os.environ):
        if key.startswith("TAPATALK_CONNECT_"):
            monkeypatch.delenv(key)
    monkeypatch.setattr("tapatalk_connect.config.load_dotenv", lambda: False)
    reset_logging()


@pytest.fixture
def default_config() -> Config:
    """Create a default configuration for testing."""
    return Config()


@pytest.fixture
def tapatalk_config() -> Config:
    """Create a configuration with application credentials."""
    return Config(
        app_name="Test Login Server",
        log_level=LogLevel.DEBUG,
        environment=Environment.LOCAL,
        client_id="42",
        client_secret="test-secret",
        token_url=TOKEN_URL,
        redirect_url=REDIRECT_URL,
        scope="read,write",
    )


@pytest.fixture
def tapatalk_app() -> TapatalkApp:
    """Create an application identity."""
    return TapatalkApp("42", "test-secret")


@pytest.fixture
def session_store() -> InMemorySessionStore:
    """Create an in-memory session store."""
    return InMemorySessionStore()


@pytest.fixture
def random_generator() -> SequenceRandomStringGenerator:
    """Create a deterministic random generator."""
    return SequenceRandomStringGenerator()


@pytest.fixture
def login(
    tapatalk_app: TapatalkApp,
    session_store: InMemorySessionStore,
) -> Iterator[TapatalkConnectLogin]:
    """Create a login flow backed by the in-memory session store."""
    flow = TapatalkConnectLogin(tapatalk_app, session_store=session_store, token_url=TOKEN_URL)
    yield flow
    flow.close()
