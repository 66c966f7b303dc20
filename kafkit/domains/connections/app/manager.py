"""Lifecycle coordination for direct connections.

The manager is the single place that talks to both the connection gateway
and the local store:

- creating connections from user input and persisting them only once the
  gateway accepted them
- testing connections (dry runs) without persisting anything
- updating connections without clobbering stored secrets with placeholders
- deleting connections remotely and locally
- re-creating stored connections in a freshly started gateway (rehydration)
- keeping one registered resource loader per stored connection
"""

from __future__ import annotations

import asyncio
import copy
import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, ClassVar

from kafkit.domains.connections.app.client import ApiError, ConnectionsApiClient
from kafkit.domains.connections.app.loaders import DirectResourceLoader, ResourceLoader
from kafkit.domains.connections.domain.config import Connection, ConnectionSpec, ConnectionType
from kafkit.domains.connections.domain.secrets import has_placeholder_secrets, merge_secrets
from kafkit.domains.connections.domain.validation import ConnectionValidationError, validate_connection_spec
from kafkit.shared.core.events import Emitter, connections_changed

if TYPE_CHECKING:
    from kafkit.domains.connections.store.connections import DirectConnectionStore

logger = logging.getLogger(__name__)


@dataclass
class ConnectionResult:
    """Outcome of a create/test/update call.

    Exactly one of ``connection`` and ``error_message`` is set, so callers can
    render inline errors without wrapping calls in try/except.
    """

    connection: Connection | None = None
    error_message: str | None = None

    @property
    def ok(self) -> bool:
        return self.connection is not None and self.error_message is None


class DirectConnectionManager:
    """Coordinates direct connections between the gateway and local storage."""

    _instance: ClassVar[DirectConnectionManager | None] = None

    def __init__(
        self,
        store: DirectConnectionStore,
        client: ConnectionsApiClient,
        loader_factory: Callable[[str], ResourceLoader] | None = None,
        changed: Emitter[str | None] | None = None,
    ) -> None:
        self.store = store
        self.client = client
        self._loader_factory = loader_factory or (lambda connection_id: DirectResourceLoader(connection_id, client))
        self.changed = changed if changed is not None else connections_changed

    @classmethod
    def get_instance(cls) -> DirectConnectionManager:
        """Build the process-wide manager from settings (composition root only)."""
        if cls._instance is None:
            from kafkit.domains.connections.store.connections import DirectConnectionStore
            from kafkit.domains.shell.store.settings import RuntimeSettings

            settings = RuntimeSettings.load()
            client = ConnectionsApiClient(settings.sidecar_url, timeout=settings.request_timeout_s)
            cls._instance = cls(DirectConnectionStore.get_instance(), client)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        cls._instance = None

    async def create_connection(self, spec: ConnectionSpec, dry_run: bool = False) -> ConnectionResult:
        """Create (or with ``dry_run``, only test) a connection.

        Nothing is sent to the gateway when the spec fails validation, and
        nothing is persisted unless the gateway accepted a non-dry-run create.
        """
        try:
            validate_connection_spec(spec)
        except ConnectionValidationError as error:
            logger.info("rejected connection %r before submitting: %s", spec.name, error)
            return ConnectionResult(error_message=str(error))

        pending = copy.deepcopy(spec)
        if not pending.id:
            pending.id = str(uuid.uuid4())
        current = self.store.get(pending.id)

        if current is not None and not dry_run:
            # Same id means the connection already exists: this is an update.
            return await self.update_connection(pending)

        incoming = pending
        if dry_run and current is not None:
            # Testing an edit: the form only has placeholders for secrets we already know.
            incoming = merge_secrets(current, pending)
            incoming.id = str(uuid.uuid4())
        if has_placeholder_secrets(incoming):
            return self._unresolved_placeholder(pending.id)

        result = await self._create_or_update(incoming, update=False, dry_run=dry_run)
        if result.ok and not dry_run:
            self.store.add(pending)
            self.init_resource_loader(pending.id)
            self.changed.fire(pending.id)
        return result

    async def update_connection(self, spec: ConnectionSpec) -> ConnectionResult:
        """Update a stored connection; placeholders are swapped for stored secrets first."""
        current = self.store.get(spec.id)
        if current is None:
            message = f"Connection {spec.id} not found, can't update"
            logger.error(message)
            return ConnectionResult(error_message=message)
        try:
            validate_connection_spec(spec)
        except ConnectionValidationError as error:
            return ConnectionResult(error_message=str(error))

        merged = merge_secrets(current, spec)
        if has_placeholder_secrets(merged):
            return self._unresolved_placeholder(spec.id)
        result = await self._create_or_update(merged, update=True)
        if not result.ok:
            return result

        # Local-only fields always come from what the user submitted.
        merged.id = spec.id
        merged.form_connection_type = spec.form_connection_type
        merged.specified_connection_type = spec.specified_connection_type
        self.store.add(merged)
        self.changed.fire(spec.id)
        return result

    async def delete_connection(self, connection_id: str) -> bool:
        """Delete a connection everywhere.

        Returns:
            False if nothing was stored under ``connection_id`` (no-op).
        """
        spec = self.store.get(connection_id)
        if spec is None:
            logger.debug("delete_connection(%s): not stored, nothing to do", connection_id)
            return False

        try:
            await asyncio.to_thread(self.client.delete_connection, connection_id)
        except Exception as error:
            # The gateway is disposable; rehydration would recreate it, so the
            # local record must still go.
            logger.error("delete_connection(%s): gateway delete failed: %s", connection_id, error)

        self.store.delete(connection_id)
        ResourceLoader.deregister_instance(connection_id)
        self.changed.fire(connection_id)
        return True

    def _unresolved_placeholder(self, connection_id: str) -> ConnectionResult:
        # The stored secret behind a placeholder is gone (e.g. session-only credentials after a restart).
        message = "A stored secret for this connection is no longer available; please re-enter it"
        logger.error("%s (connection_id=%s)", message, connection_id)
        return ConnectionResult(error_message=message)

    async def _create_or_update(
        self,
        spec: ConnectionSpec,
        update: bool = False,
        dry_run: bool = False,
    ) -> ConnectionResult:
        action = "update" if update else "test" if dry_run else "create"
        try:
            if update:
                connection = await asyncio.to_thread(self.client.update_connection, spec)
            else:
                connection = await asyncio.to_thread(self.client.create_connection, spec, dry_run)
        except ApiError as error:
            detail = error.body or error.message
        except Exception as error:
            logger.exception("_create_or_update: unexpected error trying to %s connection %s", action, spec.id)
            detail = str(error) or type(error).__name__
        else:
            return ConnectionResult(connection=connection)

        message = f"Failed to {action} connection. {detail}"
        logger.error("%s (connection_id=%s)", message, spec.id)
        return ConnectionResult(error_message=message)

    def init_resource_loader(self, connection_id: str) -> None:
        ResourceLoader.register_instance(connection_id, self._loader_factory(connection_id))

    def sync_resource_loaders(self) -> None:
        """Make the loader registry match the stored connections.

        Stored connections without a loader get one; direct loaders whose
        connection is no longer stored are dropped.
        """
        stored_ids = set(self.store.list_ids())
        existing_ids = {
            loader.connection_id
            for loader in ResourceLoader.loaders()
            if loader.connection_type == ConnectionType.DIRECT.value
        }
        for connection_id in stored_ids - existing_ids:
            self.init_resource_loader(connection_id)
        for connection_id in existing_ids - stored_ids:
            ResourceLoader.deregister_instance(connection_id)

    async def rehydrate_connections(self) -> list[str]:
        """Recreate stored connections the gateway doesn't know about.

        Connections the gateway already has are left alone. Every stored
        connection gets a registered loader.

        Returns:
            Ids of the connections that were recreated.
        """
        remote, stored = await asyncio.gather(
            asyncio.to_thread(self.client.list_connections),
            asyncio.to_thread(self.store.get_all),
        )
        remote_ids = {conn.spec.id or conn.id for conn in remote if conn.spec.is_direct}
        logger.debug("looked up direct connections -> gateway: %d, stored: %d", len(remote_ids), len(stored))

        recreated: list[str] = []
        for connection_id, spec in stored.items():
            if connection_id not in remote_ids:
                logger.debug("telling gateway about stored connection %s", connection_id)
                try:
                    await asyncio.to_thread(self.client.create_connection, spec)
                except Exception as error:
                    logger.error("rehydrate_connections: failed to recreate %s: %s", connection_id, error)
                else:
                    recreated.append(connection_id)
            self.init_resource_loader(connection_id)

        if recreated:
            self.changed.fire(None)
        return recreated
