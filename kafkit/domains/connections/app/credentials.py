"""Credentials service for secure secret storage.

Connection secrets (passwords, API secrets, TLS store passwords) never go
into the plain connections file. They are stored through a
:class:`CredentialsService`; the default implementation uses the OS keyring
(macOS Keychain, Windows Credential Locker, Linux Secret Service). Without
a usable keyring, secrets are held in memory for the current session only;
they are never written to disk in clear.
"""

from __future__ import annotations

import logging
import secrets
from abc import ABC, abstractmethod
from typing import Any

from kafkit.domains.connections.domain.secrets import ALL_SECRET_PATHS

logger = logging.getLogger(__name__)

# Service name used for keyring storage
KEYRING_SERVICE_NAME = "kafkit"


def is_keyring_usable() -> bool:
    """Return True if a usable keyring backend appears to be available."""
    try:
        import keyring
    except ImportError:
        return False

    try:
        backend = keyring.get_keyring()
        module_name = getattr(backend, "__module__", "") or ""
        priority = getattr(backend, "priority", None)
        if "keyring.backends.fail" in module_name:
            return False
        if isinstance(priority, (int, float)) and priority <= 0:
            return False

        # A read-only lookup surfaces obvious misconfiguration.
        keyring.get_password(KEYRING_SERVICE_NAME, f"check:{secrets.token_hex(8)}")
        return True
    except Exception:
        return False


def make_key(connection_id: str, path: str) -> str:
    return f"{connection_id}:{path}"


class CredentialsService(ABC):
    """Abstract base class for credential storage services."""

    @abstractmethod
    def get_secret(self, connection_id: str, path: str) -> str | None:
        """Retrieve one secret of a connection.

        Args:
            connection_id: The unique id of the connection.
            path: Dotted secret path, e.g. ``kafka_cluster.credentials.password``.

        Returns:
            The secret, or None if not stored.
        """
        ...

    @abstractmethod
    def set_secret(self, connection_id: str, path: str, value: str | None) -> None:
        """Store one secret; ``None`` deletes it.

        Empty string is a valid secret and is stored as-is.
        """
        ...

    @abstractmethod
    def delete_secret(self, connection_id: str, path: str) -> None:
        ...

    def delete_all_for_connection(self, connection_id: str) -> None:
        """Delete every secret a connection could have stored."""
        for path in ALL_SECRET_PATHS:
            self.delete_secret(connection_id, path)


class KeyringCredentialsService(CredentialsService):
    """Credentials service using the OS keyring.

    The keyring module is lazy-loaded to avoid import overhead when
    not needed.
    """

    def __init__(self) -> None:
        self._keyring: Any | None = None

    def _get_keyring(self) -> Any:
        if self._keyring is None:
            import keyring

            self._keyring = keyring
        return self._keyring

    def get_secret(self, connection_id: str, path: str) -> str | None:
        try:
            value = self._get_keyring().get_password(KEYRING_SERVICE_NAME, make_key(connection_id, path))
            return value if isinstance(value, str) else None
        except Exception as error:
            logger.debug("keyring read failed for %s: %s", make_key(connection_id, path), error)
            return None

    def set_secret(self, connection_id: str, path: str, value: str | None) -> None:
        if value is None:
            self.delete_secret(connection_id, path)
            return
        try:
            self._get_keyring().set_password(KEYRING_SERVICE_NAME, make_key(connection_id, path), value)
        except Exception as error:
            logger.warning("keyring write failed for %s: %s", make_key(connection_id, path), error)

    def delete_secret(self, connection_id: str, path: str) -> None:
        try:
            self._get_keyring().delete_password(KEYRING_SERVICE_NAME, make_key(connection_id, path))
        except Exception:
            # Deleting a secret that was never stored raises PasswordDeleteError.
            pass


class InMemoryCredentialsService(CredentialsService):
    """Credentials service keeping secrets in process memory.

    Nothing is persisted: used by tests and as the session-only fallback
    when no keyring is usable.
    """

    def __init__(self) -> None:
        self._secrets: dict[str, str] = {}

    def get_secret(self, connection_id: str, path: str) -> str | None:
        return self._secrets.get(make_key(connection_id, path))

    def set_secret(self, connection_id: str, path: str, value: str | None) -> None:
        if value is None:
            self.delete_secret(connection_id, path)
            return
        self._secrets[make_key(connection_id, path)] = value

    def delete_secret(self, connection_id: str, path: str) -> None:
        self._secrets.pop(make_key(connection_id, path), None)


_credentials_service: CredentialsService | None = None


def get_credentials_service() -> CredentialsService:
    """Get the global credentials service instance.

    Returns the keyring-based service by default. If keyring isn't usable,
    falls back to an in-memory store that is lost when the process exits.
    """
    global _credentials_service
    if _credentials_service is None:
        if is_keyring_usable():
            _credentials_service = KeyringCredentialsService()
        else:
            logger.warning("No usable keyring; connection secrets will not survive a restart")
            _credentials_service = InMemoryCredentialsService()
    return _credentials_service


def set_credentials_service(service: CredentialsService | None) -> None:
    """Set the global credentials service instance (primarily for tests)."""
    global _credentials_service
    _credentials_service = service


def reset_credentials_service() -> None:
    global _credentials_service
    _credentials_service = None
