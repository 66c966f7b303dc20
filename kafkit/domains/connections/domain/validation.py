"""Pre-network validation of connection specs."""

from __future__ import annotations

from kafkit.domains.connections.domain.config import ConnectionSpec


class ConnectionValidationError(ValueError):
    """A connection spec was rejected before anything was sent to the gateway."""


def validate_connection_spec(spec: ConnectionSpec) -> None:
    """Raise ConnectionValidationError if ``spec`` cannot be submitted.

    A connection needs at least one of Kafka or Schema Registry configured;
    a configured section needs its address.
    """
    if spec.kafka_cluster is None and spec.schema_registry is None:
        raise ConnectionValidationError("At least one of Kafka cluster or Schema Registry must be configured")
    if not spec.name.strip():
        raise ConnectionValidationError("Connection name is required")
    if spec.kafka_cluster is not None and not spec.kafka_cluster.bootstrap_servers.strip():
        raise ConnectionValidationError("Kafka cluster bootstrap servers are required")
    if spec.schema_registry is not None and not spec.schema_registry.uri.strip():
        raise ConnectionValidationError("Schema Registry URI is required")
