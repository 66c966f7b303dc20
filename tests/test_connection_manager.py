"""Tests for the direct connection lifecycle manager."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from kafkit.domains.connections.app.client import ApiError
from kafkit.domains.connections.app.loaders import DirectResourceLoader, ResourceLoader, UnknownConnectionError
from kafkit.domains.connections.app.manager import DirectConnectionManager
from kafkit.domains.connections.domain.config import Connection, ConnectionSpec
from kafkit.domains.connections.domain.secrets import PLACEHOLDER_SECRET
from kafkit.shared.core.events import Emitter


class TestCreateConnection:
    @pytest.mark.asyncio
    async def test_rejects_spec_without_kafka_or_schema_registry(self, manager, store, client) -> None:
        spec = ConnectionSpec(id="c1", name="nothing")

        result = await manager.create_connection(spec)

        assert not result.ok
        assert result.error_message
        assert store.get_all() == {}
        client.create_connection.assert_not_called()

    @pytest.mark.asyncio
    async def test_success_persists_and_registers_loader(self, manager, store, client, make_spec) -> None:
        result = await manager.create_connection(make_spec())

        assert result.ok
        assert store.get("conn-1").kafka_cluster.credentials.password == "real-pw"
        assert isinstance(ResourceLoader.get_instance("conn-1"), DirectResourceLoader)
        client.create_connection.assert_called_once()

    @pytest.mark.asyncio
    async def test_assigns_id_when_missing(self, manager, store, make_spec) -> None:
        result = await manager.create_connection(make_spec(connection_id=""))

        assert result.ok
        ids = store.list_ids()
        assert len(ids) == 1
        assert ids[0]

    @pytest.mark.asyncio
    async def test_dry_run_does_not_persist(self, manager, store, client, make_spec) -> None:
        result = await manager.create_connection(make_spec(), dry_run=True)

        assert result.ok
        assert store.get_all() == {}
        assert ResourceLoader.loaders() == []
        _, dry_run = client.create_connection.call_args.args
        assert dry_run is True

    @pytest.mark.asyncio
    async def test_dry_run_of_edit_merges_secrets_under_fresh_id(self, manager, store, client, make_spec) -> None:
        store.add(make_spec())

        result = await manager.create_connection(make_spec(kafka_password=PLACEHOLDER_SECRET), dry_run=True)

        assert result.ok
        submitted, _ = client.create_connection.call_args.args
        assert submitted.id != "conn-1"
        assert submitted.kafka_cluster.credentials.password == "real-pw"

    @pytest.mark.asyncio
    async def test_api_error_is_returned_not_raised(self, manager, store, client, make_spec) -> None:
        client.create_connection.side_effect = ApiError(400, "Bad Request", '{"message": "bad bootstrap"}')

        result = await manager.create_connection(make_spec())

        assert not result.ok
        assert result.error_message == 'Failed to create connection. {"message": "bad bootstrap"}'
        assert store.get_all() == {}

    @pytest.mark.asyncio
    async def test_unexpected_error_is_returned_not_raised(self, manager, store, client, make_spec) -> None:
        client.create_connection.side_effect = ConnectionRefusedError("refused")

        result = await manager.create_connection(make_spec(), dry_run=True)

        assert result.error_message == "Failed to test connection. refused"

    @pytest.mark.asyncio
    async def test_existing_id_is_an_update(self, manager, store, client, make_spec) -> None:
        store.add(make_spec(name="old"))

        result = await manager.create_connection(make_spec(name="new"))

        assert result.ok
        client.create_connection.assert_not_called()
        client.update_connection.assert_called_once()
        assert store.get("conn-1").name == "new"

    @pytest.mark.asyncio
    async def test_fires_connections_changed(self, store, client, make_spec) -> None:
        changed: Emitter[str | None] = Emitter("test")
        seen: list[str | None] = []
        changed.subscribe(seen.append)
        manager = DirectConnectionManager(store, client, changed=changed)

        await manager.create_connection(make_spec())

        assert seen == ["conn-1"]


class TestUpdateConnection:
    @pytest.mark.asyncio
    async def test_placeholders_keep_stored_secrets(self, manager, store, client, make_spec) -> None:
        store.add(make_spec(kafka_password="real-pw", sr_secret="real-sr"))
        pending = make_spec(name="renamed", kafka_password=PLACEHOLDER_SECRET, sr_secret="new-sr")

        result = await manager.update_connection(pending)

        assert result.ok
        submitted = client.update_connection.call_args.args[0]
        assert submitted.kafka_cluster.credentials.password == "real-pw"
        assert submitted.schema_registry.credentials.api_secret == "new-sr"
        stored = store.get("conn-1")
        assert stored.name == "renamed"
        assert stored.kafka_cluster.credentials.password == "real-pw"
        assert stored.schema_registry.credentials.api_secret == "new-sr"

    @pytest.mark.asyncio
    async def test_failure_leaves_store_untouched(self, manager, store, client, make_spec) -> None:
        store.add(make_spec(name="original"))
        client.update_connection.side_effect = ApiError(500, "Internal Server Error", "boom")

        result = await manager.update_connection(make_spec(name="changed", kafka_password="other"))

        assert result.error_message == "Failed to update connection. boom"
        stored = store.get("conn-1")
        assert stored.name == "original"
        assert stored.kafka_cluster.credentials.password == "real-pw"

    @pytest.mark.asyncio
    async def test_unknown_connection(self, manager, client, make_spec) -> None:
        result = await manager.update_connection(make_spec(connection_id="missing"))

        assert result.error_message == "Connection missing not found, can't update"
        client.update_connection.assert_not_called()

    @pytest.mark.asyncio
    async def test_keeps_local_form_type(self, manager, store, client, make_spec) -> None:
        store.add(make_spec())
        pending = make_spec()
        pending.form_connection_type = "Other"
        pending.specified_connection_type = "Redpanda"
        client.update_connection.side_effect = lambda spec: Connection(
            id=spec.id, spec=ConnectionSpec(id=spec.id, name=spec.name)
        )

        await manager.update_connection(pending)

        stored = store.get("conn-1")
        assert stored.form_connection_type == "Other"
        assert stored.specified_connection_type == "Redpanda"

    @pytest.mark.asyncio
    async def test_placeholder_without_stored_secret_is_rejected(self, manager, store, client, make_spec) -> None:
        # e.g. session-only credentials lost on restart
        store.add(make_spec(kafka_password=None))

        result = await manager.update_connection(make_spec(name="renamed", kafka_password=PLACEHOLDER_SECRET))

        assert not result.ok
        assert "no longer available" in result.error_message
        client.update_connection.assert_not_called()
        assert store.get("conn-1").name == "local"

    @pytest.mark.asyncio
    async def test_dry_run_of_edit_with_lost_secret_is_rejected(self, manager, store, client, make_spec) -> None:
        store.add(make_spec(sr_secret=None))

        result = await manager.create_connection(make_spec(sr_secret=PLACEHOLDER_SECRET), dry_run=True)

        assert not result.ok
        client.create_connection.assert_not_called()

    @pytest.mark.asyncio
    async def test_new_connection_with_placeholder_is_rejected(self, manager, store, client, make_spec) -> None:
        result = await manager.create_connection(make_spec(kafka_password=PLACEHOLDER_SECRET))

        assert not result.ok
        client.create_connection.assert_not_called()
        assert store.get_all() == {}


class TestDeleteConnection:
    @pytest.mark.asyncio
    async def test_absent_connection_is_a_noop(self, manager, client) -> None:
        assert await manager.delete_connection("missing") is False
        client.delete_connection.assert_not_called()

    @pytest.mark.asyncio
    async def test_deletes_everywhere_and_deregisters_loader(self, manager, store, client, make_spec) -> None:
        await manager.create_connection(make_spec())

        assert await manager.delete_connection("conn-1") is True

        client.delete_connection.assert_called_once_with("conn-1")
        assert store.get("conn-1") is None
        with pytest.raises(UnknownConnectionError, match="Unknown connection ID conn-1"):
            ResourceLoader.get_instance("conn-1")

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, manager, make_spec) -> None:
        await manager.create_connection(make_spec())
        assert await manager.delete_connection("conn-1") is True
        assert await manager.delete_connection("conn-1") is False

    @pytest.mark.asyncio
    async def test_remote_failure_still_deletes_locally(self, manager, store, client, make_spec) -> None:
        store.add(make_spec())
        client.delete_connection.side_effect = ApiError(500, "Internal Server Error")

        assert await manager.delete_connection("conn-1") is True
        assert store.get("conn-1") is None


class TestRehydrateConnections:
    @pytest.mark.asyncio
    async def test_recreates_connection_missing_remotely(self, manager, store, client, make_spec) -> None:
        spec = make_spec("x")
        store.add(spec)

        recreated = await manager.rehydrate_connections()

        assert recreated == ["x"]
        client.create_connection.assert_called_once()
        submitted = client.create_connection.call_args.args[0]
        assert submitted.to_dict() == spec.to_dict()

    @pytest.mark.asyncio
    async def test_leaves_known_connections_alone(self, manager, store, client, make_spec) -> None:
        spec = make_spec("x")
        store.add(spec)
        client.list_connections.return_value = [Connection(id="x", spec=spec)]

        assert await manager.rehydrate_connections() == []
        client.create_connection.assert_not_called()

    @pytest.mark.asyncio
    async def test_registers_loaders_for_every_stored_connection(self, manager, store, client, make_spec) -> None:
        store.add(make_spec("x"))
        store.add(make_spec("y"))
        client.list_connections.return_value = [Connection(id="x", spec=make_spec("x"))]

        await manager.rehydrate_connections()

        assert {loader.connection_id for loader in ResourceLoader.loaders()} == {"x", "y"}

    @pytest.mark.asyncio
    async def test_failed_recreate_is_not_reported(self, manager, store, client, make_spec) -> None:
        store.add(make_spec("x"))
        store.add(make_spec("y"))

        def create(spec, dry_run=False):
            if spec.id == "x":
                raise ApiError(400, "Bad Request", "nope")
            return Connection(id=spec.id, spec=spec)

        client.create_connection.side_effect = create

        assert await manager.rehydrate_connections() == ["y"]

    @pytest.mark.asyncio
    async def test_non_direct_remote_connections_are_ignored(self, manager, store, client, make_spec) -> None:
        store.add(make_spec("x"))
        local = make_spec("x")
        local.type = "LOCAL"
        client.list_connections.return_value = [Connection(id="x", spec=local)]

        assert await manager.rehydrate_connections() == ["x"]


class TestSyncResourceLoaders:
    def test_adds_missing_and_drops_stale(self, manager, store, make_spec) -> None:
        store.add(make_spec("kept"))
        ResourceLoader.register_instance("gone", DirectResourceLoader("gone", MagicMock()))

        manager.sync_resource_loaders()

        assert {loader.connection_id for loader in ResourceLoader.loaders()} == {"kept"}
