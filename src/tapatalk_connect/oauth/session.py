"""Session storage for the login flow.

Holds the CSRF state between issuing a login URL and handling the
provider's callback. Each store instance is scoped to one user session.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING

from cryptography.fernet import Fernet, InvalidToken

from tapatalk_connect.exceptions import SessionStoreError
from tapatalk_connect.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

logger = get_logger(__name__)

# Session key holding the pending CSRF state
STATE_KEY = "state"

# How long a login may wait for its callback; matches the session cookie
DEFAULT_PENDING_TIMEOUT = timedelta(minutes=10)

DEFAULT_MAX_PENDING = 10_000

_file_locks: dict[Path, threading.Lock] = {}
_file_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    """Return the lock shared by every store backed by ``path``."""
    with _file_locks_guard:
        return _file_locks.setdefault(path.resolve(), threading.Lock())


class SessionStore(ABC):
    """Abstract base class for per-session key/value storage."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value stored under ``key``, or None."""

    @abstractmethod
    def set(self, key: str, value: str | None) -> None:
        """Store ``value`` under ``key``.

        Setting None removes the key.
        """

    def clear(self, key: str) -> None:
        """Remove ``key`` from the session."""
        self.set(key, None)


class InMemorySessionStore(SessionStore):
    """In-memory session storage.

    Values are lost when the process exits. Suitable for tests, scripts
    and single-process servers.
    """

    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str | None) -> None:
        with self._lock:
            if value is None:
                self._data.pop(key, None)
            else:
                self._data[key] = value

    def clear_all(self) -> None:
        """Drop every stored value."""
        with self._lock:
            self._data.clear()


class EncryptedFileSessionStore(SessionStore):
    """Encrypted file-based session storage.

    Sessions are encrypted with Fernet and kept in a single JSON file
    keyed by namespace, so one file can back many user sessions. The
    file is re-read on every operation and written atomically. Stores
    on the same path share a lock, so concurrent sessions in one process
    never lose each other's writes.
    """

    def __init__(
        self,
        encryption_key: str,
        file_path: str | Path,
        namespace: str = "default",
    ) -> None:
        """Initialize encrypted file store.

        Args:
            encryption_key: Fernet-compatible encryption key
            file_path: Path to the session storage file
            namespace: Session this store reads and writes

        Raises:
            SessionStoreError: If encryption key is invalid
        """
        try:
            self._fernet = Fernet(encryption_key.encode())
        except Exception as e:
            raise SessionStoreError(f"Invalid encryption key: {e}") from e

        self._file_path = Path(file_path)
        self._namespace = namespace
        self._lock = _lock_for(self._file_path)

    @property
    def namespace(self) -> str:
        return self._namespace

    def _load(self) -> dict[str, dict[str, str]]:
        """Load and decrypt all sessions from file."""
        if not self._file_path.exists():
            return {}

        try:
            decrypted = self._fernet.decrypt(self._file_path.read_bytes())
            data: dict[str, dict[str, str]] = json.loads(decrypted.decode())
        except InvalidToken:
            logger.error("Failed to decrypt session file - wrong key?")
            raise SessionStoreError("Failed to decrypt session file") from None
        except json.JSONDecodeError as e:
            logger.error("Failed to parse session file: %s", e)
            raise SessionStoreError(f"Failed to parse session file: {e}") from e

        return data

    def _save(self, data: dict[str, dict[str, str]]) -> None:
        """Encrypt and save all sessions to file atomically."""
        encrypted = self._fernet.encrypt(json.dumps(data).encode())

        dir_path = self._file_path.parent
        dir_path.mkdir(parents=True, exist_ok=True)

        fd, temp_path_str = tempfile.mkstemp(dir=dir_path)
        temp_path = Path(temp_path_str)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(encrypted)
            temp_path.replace(self._file_path)
        except Exception:
            if temp_path.exists():
                temp_path.unlink()
            raise

        logger.debug("Saved sessions to %s", self._file_path)

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._load().get(self._namespace, {}).get(key)

    def set(self, key: str, value: str | None) -> None:
        with self._lock:
            data = self._load()
            session = data.setdefault(self._namespace, {})
            if value is None:
                if key not in session:
                    return
                del session[key]
                if not session:
                    del data[self._namespace]
            else:
                session[key] = value
            self._save(data)


def create_session_store(
    encryption_key: str | None = None,
    file_path: str | Path | None = None,
    namespace: str = "default",
) -> SessionStore:
    """Create appropriate session store based on configuration.

    Args:
        encryption_key: Optional Fernet encryption key
        file_path: Optional path for persistent storage
        namespace: Session the store is scoped to (file store only)

    Returns:
        Configured SessionStore instance
    """
    if file_path and encryption_key:
        return EncryptedFileSessionStore(encryption_key, file_path, namespace)
    return InMemorySessionStore()


@dataclass
class PendingLogin:
    """A login waiting for its callback."""

    store: SessionStore
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def is_expired(self, timeout: timedelta = DEFAULT_PENDING_TIMEOUT) -> bool:
        return datetime.now(UTC) > (self.created_at + timeout)


class PendingLogins:
    """Session stores of logins that have not completed yet.

    Entries expire after ``timeout`` and the oldest are evicted once
    ``max_size`` is reached. A dropped entry has its CSRF state cleared,
    which also removes it from a shared session file.
    """

    def __init__(
        self,
        store_factory: Callable[[str], SessionStore],
        timeout: timedelta = DEFAULT_PENDING_TIMEOUT,
        max_size: int = DEFAULT_MAX_PENDING,
    ) -> None:
        """Initialize pending login registry.

        Args:
            store_factory: Builds the session store for a session ID
            timeout: How long a login may wait for its callback
            max_size: Maximum number of pending logins kept
        """
        self._store_factory = store_factory
        self._timeout = timeout
        self._max_size = max_size
        self._logins: dict[str, PendingLogin] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._logins)

    def start(self, session_id: str) -> SessionStore:
        """Register or refresh the login of a session.

        Args:
            session_id: Session identifier

        Returns:
            Session store for the login
        """
        with self._lock:
            dropped = self._pop_expired()
            pending = self._logins.pop(session_id, None)
            store = pending.store if pending else self._store_factory(session_id)
            self._logins[session_id] = PendingLogin(store=store)

            while len(self._logins) > self._max_size:
                oldest = next(iter(self._logins))
                dropped.append(self._logins.pop(oldest).store)

        self._discard_stores(dropped)
        return store

    def get(self, session_id: str) -> SessionStore:
        """Return the session store for a callback.

        Unknown or expired sessions get a fresh, unregistered store, so a
        callback for them fails CSRF validation.
        """
        with self._lock:
            dropped = self._pop_expired()
            pending = self._logins.get(session_id)

        self._discard_stores(dropped)
        if pending is None:
            logger.debug("No pending login for session %s", session_id[:8])
            return self._store_factory(session_id)
        return pending.store

    def finish(self, session_id: str) -> None:
        """Forget the login of a session, whatever its outcome."""
        with self._lock:
            pending = self._logins.pop(session_id, None)

        if pending:
            self._discard_stores([pending.store])

    def _pop_expired(self) -> list[SessionStore]:
        expired = [
            session_id for session_id, pending in self._logins.items()
            if pending.is_expired(self._timeout)
        ]
        if expired:
            logger.debug("Dropping %d expired pending logins", len(expired))
        return [self._logins.pop(session_id).store for session_id in expired]

    @staticmethod
    def _discard_stores(stores: list[SessionStore]) -> None:
        for store in stores:
            try:
                store.clear(STATE_KEY)
            except SessionStoreError as e:
                logger.warning("Could not discard pending login: %s", e)
