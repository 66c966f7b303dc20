"""Store for user-defined (direct) connection specs."""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING

from kafkit.domains.connections.domain.config import ConnectionSpec
from kafkit.domains.connections.domain.secrets import ALL_SECRET_PATHS, get_secret, secret_paths, set_secret
from kafkit.shared.core.store import JSONFileStore, get_config_dir

if TYPE_CHECKING:
    from pathlib import Path

    from kafkit.domains.connections.app.credentials import CredentialsService

logger = logging.getLogger(__name__)


class DirectConnectionStore(JSONFileStore):
    """Durable id -> ConnectionSpec mapping.

    Specs are stored as a JSON object in ~/.kafkit/connections.json keyed by
    connection id. Every secret field is written as null; the real values are
    kept in the OS keyring via CredentialsService and re-attached on load.
    """

    _instance: DirectConnectionStore | None = None

    def __init__(
        self,
        credentials_service: CredentialsService | None = None,
        file_path: Path | None = None,
    ) -> None:
        super().__init__(file_path or get_config_dir() / "connections.json")
        self._credentials_service = credentials_service

    @property
    def credentials_service(self) -> CredentialsService:
        """Get the credentials service (lazy-loaded)."""
        if self._credentials_service is None:
            from kafkit.domains.connections.app.credentials import get_credentials_service

            return get_credentials_service()
        return self._credentials_service

    @classmethod
    def get_instance(cls) -> DirectConnectionStore:
        """Get the singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance (useful for testing)."""
        cls._instance = None

    def _load_secrets(self, spec: ConnectionSpec) -> None:
        for path in list(secret_paths(spec)):
            if get_secret(spec, path) is not None:
                continue
            value = self.credentials_service.get_secret(spec.id, path)
            if value is not None:
                set_secret(spec, path, value)

    def _save_secrets(self, spec: ConnectionSpec) -> None:
        # Paths absent from the spec resolve to None, which deletes any stale secret
        # left over from a previous credential variant.
        for path in ALL_SECRET_PATHS:
            self.credentials_service.set_secret(spec.id, path, get_secret(spec, path))

    def _to_dict_without_secrets(self, spec: ConnectionSpec) -> dict:
        stripped = copy.deepcopy(spec)
        for path in list(secret_paths(stripped)):
            set_secret(stripped, path, None)
        return stripped.to_dict()

    def _read_raw(self) -> dict[str, dict]:
        return self._read_object()

    def get_all(self, load_secrets: bool = True) -> dict[str, ConnectionSpec]:
        """Load all stored connections, keyed by id, in insertion order."""
        connections: dict[str, ConnectionSpec] = {}
        for conn_id, raw in self._read_raw().items():
            if not isinstance(raw, dict):
                logger.warning("Skipping malformed stored connection %s", conn_id)
                continue
            try:
                spec = ConnectionSpec.from_dict({**raw, "id": conn_id})
            except (TypeError, KeyError, ValueError) as error:
                logger.warning("Skipping unreadable stored connection %s: %s", conn_id, error)
                continue
            if load_secrets:
                self._load_secrets(spec)
            connections[conn_id] = spec
        return connections

    def get(self, connection_id: str) -> ConnectionSpec | None:
        raw = self._read_raw().get(connection_id)
        if not isinstance(raw, dict):
            return None
        spec = ConnectionSpec.from_dict({**raw, "id": connection_id})
        self._load_secrets(spec)
        return spec

    def add(self, spec: ConnectionSpec) -> None:
        """Add a connection, replacing any existing one with the same id."""
        if not spec.id:
            raise ValueError("Connection id is required")
        data = self._read_raw()
        self._save_secrets(spec)
        data[spec.id] = self._to_dict_without_secrets(spec)
        self._write_json(data)

    def delete(self, connection_id: str) -> bool:
        """Delete a connection and its secrets.

        Returns:
            True if deleted, False if not found.
        """
        data = self._read_raw()
        if connection_id not in data:
            return False
        del data[connection_id]
        self.credentials_service.delete_all_for_connection(connection_id)
        self._write_json(data)
        return True

    def delete_all(self) -> None:
        for connection_id in self._read_raw():
            self.credentials_service.delete_all_for_connection(connection_id)
        self._write_json({})

    def list_ids(self) -> list[str]:
        return list(self._read_raw().keys())
