"""Pytest fixtures for kafkit tests."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Callable
from unittest.mock import MagicMock

import pytest

_TEST_CONFIG_DIR = Path(tempfile.mkdtemp(prefix="kafkit-test-config-"))
os.environ.setdefault("KAFKIT_CONFIG_DIR", str(_TEST_CONFIG_DIR))

from kafkit.domains.connections.app.client import ConnectionsApiClient  # noqa: E402
from kafkit.domains.connections.app.credentials import (  # noqa: E402
    InMemoryCredentialsService,
    reset_credentials_service,
    set_credentials_service,
)
from kafkit.domains.connections.app.loaders import ResourceLoader  # noqa: E402
from kafkit.domains.connections.app.manager import DirectConnectionManager  # noqa: E402
from kafkit.domains.connections.domain.config import (  # noqa: E402
    ApiKeyAndSecret,
    BasicCredentials,
    ConnectionSpec,
    KafkaClusterConfig,
    SchemaRegistryConfig,
)
from kafkit.domains.connections.store.connections import DirectConnectionStore  # noqa: E402
from kafkit.domains.explorer.app.view_provider import BaseViewProvider  # noqa: E402
from kafkit.shared.core.events import connections_changed  # noqa: E402
from kafkit.shared.core.logs import reset_logging  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_global_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Point config at a per-test dir and reset every process-wide singleton."""
    monkeypatch.setenv("KAFKIT_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.delenv("KAFKIT_SETTINGS_PATH", raising=False)
    monkeypatch.delenv("KAFKIT_SIDECAR_URL", raising=False)
    monkeypatch.delenv("KAFKIT_LOG_LEVEL", raising=False)
    set_credentials_service(InMemoryCredentialsService())
    ResourceLoader.clear_registry()
    connections_changed.clear()
    DirectConnectionStore.reset_instance()
    DirectConnectionManager.reset_instance()
    BaseViewProvider.reset_instances()
    yield
    ResourceLoader.clear_registry()
    connections_changed.clear()
    DirectConnectionStore.reset_instance()
    DirectConnectionManager.reset_instance()
    BaseViewProvider.reset_instances()
    reset_credentials_service()
    reset_logging()


@pytest.fixture
def credentials() -> InMemoryCredentialsService:
    return InMemoryCredentialsService()


@pytest.fixture
def store(tmp_path: Path, credentials: InMemoryCredentialsService) -> DirectConnectionStore:
    return DirectConnectionStore(credentials_service=credentials, file_path=tmp_path / "connections.json")


@pytest.fixture
def client() -> MagicMock:
    """A gateway client whose calls succeed by echoing the submitted spec."""
    mock = MagicMock(spec=ConnectionsApiClient)
    mock.list_connections.return_value = []
    mock.create_connection.side_effect = lambda spec, dry_run=False: _echo(spec)
    mock.update_connection.side_effect = _echo
    mock.delete_connection.return_value = None
    return mock


def _echo(spec: ConnectionSpec):
    from kafkit.domains.connections.domain.config import Connection

    return Connection(id=spec.id, spec=spec, status={})


@pytest.fixture
def manager(store: DirectConnectionStore, client: MagicMock) -> DirectConnectionManager:
    return DirectConnectionManager(store, client)


@pytest.fixture
def make_spec() -> Callable[..., ConnectionSpec]:
    """Factory for a connection with Kafka basic auth and Schema Registry API key auth."""

    def _make(
        connection_id: str = "conn-1",
        name: str = "local",
        kafka_password: str | None = "real-pw",
        sr_secret: str | None = "real-sr-secret",
        with_kafka: bool = True,
        with_schema_registry: bool = True,
    ) -> ConnectionSpec:
        return ConnectionSpec(
            id=connection_id,
            name=name,
            kafka_cluster=KafkaClusterConfig(
                bootstrap_servers="localhost:9092",
                credentials=BasicCredentials(username="alice", password=kafka_password),
            )
            if with_kafka
            else None,
            schema_registry=SchemaRegistryConfig(
                uri="http://localhost:8081",
                credentials=ApiKeyAndSecret(api_key="sr-key", api_secret=sr_secret),
            )
            if with_schema_registry
            else None,
        )

    return _make
