"""Tests for the kafkit command line."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from kafkit.cli import main
from kafkit.domains.connections.app.client import ApiError
from kafkit.domains.connections.domain.config import Connection
from kafkit.domains.connections.domain.secrets import PLACEHOLDER_SECRET, redact_secrets


@pytest.fixture(autouse=True)
def _use_test_manager(manager):
    with (
        patch("kafkit.domains.connections.cli.commands._get_manager", return_value=manager),
        patch("kafkit.domains.connections.cli.commands.is_keyring_usable", return_value=True),
    ):
        yield


class TestConnectionCommands:
    def test_list_empty(self, capsys) -> None:
        assert main(["connection", "list"]) == 0
        assert "No saved connections." in capsys.readouterr().out

    def test_create_from_flags(self, store, capsys) -> None:
        code = main(
            [
                "connection",
                "create",
                "--id",
                "local",
                "--name",
                "Local",
                "--bootstrap-servers",
                "localhost:9092",
                "--kafka-auth",
                "basic",
                "--kafka-username",
                "alice",
                "--kafka-password",
                "pw",
            ]
        )

        assert code == 0
        spec = store.get("local")
        assert spec.kafka_cluster.credentials.password == "pw"
        assert "created" in capsys.readouterr().out

    def test_create_without_keyring_warns_session_only(self, store, capsys) -> None:
        argv = ["connection", "create", "--id", "s", "--name", "S", "--schema-registry-uri", "http://sr:8081"]
        argv += ["--sr-auth", "basic", "--sr-username", "bob", "--sr-password", "hunter2"]
        with patch("kafkit.domains.connections.cli.commands.is_keyring_usable", return_value=False):
            code = main(argv)

        assert code == 0
        assert "only be kept for this session" in capsys.readouterr().out
        assert "hunter2" not in store.file_path.read_text()

    def test_create_without_sections_fails(self, store, capsys) -> None:
        assert main(["connection", "create", "--name", "empty"]) == 1
        assert "At least one of Kafka cluster or Schema Registry" in capsys.readouterr().out
        assert store.get_all() == {}

    def test_test_flag_does_not_persist(self, store, client) -> None:
        code = main(["connection", "create", "--test", "--name", "x", "--schema-registry-uri", "http://sr:8081"])

        assert code == 0
        assert store.get_all() == {}
        assert client.create_connection.call_args.args[1] is True

    def test_auth_flags_need_their_section(self, capsys) -> None:
        assert main(["connection", "create", "--name", "x", "--kafka-auth", "api"]) == 1
        assert "--kafka-auth requires --bootstrap-servers" in capsys.readouterr().out

    def test_show_redacts_secrets(self, store, make_spec, capsys) -> None:
        store.add(make_spec())

        assert main(["connection", "show", "conn-1"]) == 0

        out = capsys.readouterr().out
        assert "real-pw" not in out
        assert json.loads(out)["kafka_cluster"]["credentials"]["password"] == PLACEHOLDER_SECRET

    def test_show_status_from_gateway(self, store, make_spec, client, capsys) -> None:
        store.add(make_spec())
        client.get_connection.return_value = Connection(
            id="conn-1", spec=make_spec(), status={"kafka_cluster": {"state": "SUCCESS"}}
        )

        assert main(["connection", "show", "conn-1", "--status"]) == 0

        out = capsys.readouterr().out
        assert "Gateway status:" in out
        assert "SUCCESS" in out
        assert "real-pw" not in out
        client.get_connection.assert_called_once_with("conn-1")

    def test_show_status_unknown_to_gateway(self, store, make_spec, client, capsys) -> None:
        store.add(make_spec())
        client.get_connection.return_value = None

        assert main(["connection", "show", "conn-1", "--status"]) == 1
        assert "Not known to the gateway" in capsys.readouterr().out

    def test_show_unknown(self, capsys) -> None:
        assert main(["connection", "show", "nope"]) == 1
        assert "not found" in capsys.readouterr().out

    def test_update_from_shown_file_keeps_secrets(self, store, make_spec, tmp_path) -> None:
        store.add(make_spec())
        exported = redact_secrets(make_spec(name="renamed")).to_dict()
        path = tmp_path / "conn.json"
        path.write_text(json.dumps(exported))

        assert main(["connection", "update", "conn-1", "--from-file", str(path)]) == 0

        stored = store.get("conn-1")
        assert stored.name == "renamed"
        assert stored.kafka_cluster.credentials.password == "real-pw"

    def test_create_from_invalid_file(self, tmp_path, capsys) -> None:
        path = tmp_path / "conn.json"
        path.write_text("[]")
        assert main(["connection", "create", "--from-file", str(path)]) == 1
        assert "expected a JSON object" in capsys.readouterr().out

    def test_delete(self, store, make_spec, capsys) -> None:
        store.add(make_spec())
        assert main(["connection", "delete", "conn-1"]) == 0
        assert store.get("conn-1") is None
        assert main(["connection", "delete", "conn-1"]) == 1

    def test_list_shows_connections(self, store, make_spec, capsys) -> None:
        store.add(make_spec(name="prod"))
        assert main(["connection", "list"]) == 0
        out = capsys.readouterr().out
        assert "prod" in out
        assert "localhost:9092" in out

    def test_rehydrate(self, store, make_spec, capsys) -> None:
        store.add(make_spec())
        assert main(["connection", "rehydrate"]) == 0
        assert "Recreated 1 connection(s): conn-1" in capsys.readouterr().out

    def test_rehydrate_gateway_down(self, client, capsys) -> None:
        client.list_connections.side_effect = ApiError(502, "Bad Gateway")
        assert main(["connection", "rehydrate"]) == 1
        assert "Could not reach the connection gateway" in capsys.readouterr().out


class TestSchemaAccessCommand:
    def test_granted(self, store, make_spec, client, capsys) -> None:
        store.add(make_spec())
        client.list_subject_versions.return_value = [1]

        assert main(["schema-access", "conn-1", "orders"]) == 0
        assert "granted" in capsys.readouterr().out

    def test_denied_shows_warning(self, store, make_spec, client, capsys) -> None:
        store.add(make_spec())
        client.list_subject_versions.side_effect = ApiError(403, "Forbidden")

        assert main(["schema-access", "conn-1", "orders"]) == 1
        out = capsys.readouterr().out
        assert "denied" in out
        assert "permission to read schemas" in out

    def test_unknown_connection(self, capsys) -> None:
        assert main(["schema-access", "nope", "orders"]) == 1


class TestExploreCommand:
    def test_rehydrates_then_runs_app(self, store, make_spec, client) -> None:
        store.add(make_spec())
        with patch("kafkit.domains.explorer.ui.app.ExplorerApp.run") as run:
            assert main(["explore"]) == 0
        run.assert_called_once()
        client.create_connection.assert_called_once()

    def test_gateway_down_still_runs_app(self, client) -> None:
        client.list_connections.side_effect = ApiError(502, "Bad Gateway")
        with patch("kafkit.domains.explorer.ui.app.ExplorerApp.run") as run:
            assert main(["explore"]) == 0
        run.assert_called_once()
