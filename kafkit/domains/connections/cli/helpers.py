"""CLI helpers for building connection specs from arguments or files."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from kafkit.domains.connections.domain.config import (
    ApiKeyAndSecret,
    BasicCredentials,
    ConnectionSpec,
    Credentials,
    FormConnectionType,
    HashAlgorithm,
    KafkaClusterConfig,
    SchemaRegistryConfig,
    ScramCredentials,
    TLSConfig,
)

KAFKA_AUTH_CHOICES = ("none", "basic", "api", "scram")
SCHEMA_REGISTRY_AUTH_CHOICES = ("none", "basic", "api")


def add_spec_arguments(parser: argparse.ArgumentParser) -> None:
    """Add the flags that describe a direct connection."""
    parser.add_argument("--id", dest="connection_id", help="Connection id (default: generated)")
    parser.add_argument("--name", "-n", help="Connection name")
    parser.add_argument(
        "--form-type",
        choices=[t.value for t in FormConnectionType],
        default=FormConnectionType.APACHE_KAFKA.value,
        help="Kind of system being connected to",
    )
    parser.add_argument("--specified-type", help="Free-text system type (with --form-type Other)")

    kafka = parser.add_argument_group("Kafka cluster")
    kafka.add_argument("--bootstrap-servers", help="Comma-separated host:port list")
    kafka.add_argument("--kafka-auth", choices=KAFKA_AUTH_CHOICES, default="none")
    kafka.add_argument("--kafka-username", help="Username (basic or scram auth)")
    kafka.add_argument("--kafka-password", help="Password (basic or scram auth)")
    kafka.add_argument("--kafka-api-key", help="API key (api auth)")
    kafka.add_argument("--kafka-api-secret", help="API secret (api auth)")
    kafka.add_argument(
        "--scram-hash",
        choices=[h.value for h in HashAlgorithm],
        default=HashAlgorithm.SCRAM_SHA_256.value,
    )
    kafka.add_argument("--kafka-tls", action="store_true", help="Enable TLS for the Kafka cluster")

    registry = parser.add_argument_group("Schema Registry")
    registry.add_argument("--schema-registry-uri", help="Schema Registry URL")
    registry.add_argument("--sr-auth", choices=SCHEMA_REGISTRY_AUTH_CHOICES, default="none")
    registry.add_argument("--sr-username", help="Username (basic auth)")
    registry.add_argument("--sr-password", help="Password (basic auth)")
    registry.add_argument("--sr-api-key", help="API key (api auth)")
    registry.add_argument("--sr-api-secret", help="API secret (api auth)")
    registry.add_argument("--sr-tls", action="store_true", help="Enable TLS for the Schema Registry")


def _credentials_from_args(
    auth: str,
    username: str | None,
    password: str | None,
    api_key: str | None,
    api_secret: str | None,
    hash_algorithm: str | None = None,
) -> Credentials | None:
    if auth == "basic":
        if not username:
            raise ValueError("basic auth requires a username")
        return BasicCredentials(username=username, password=password)
    if auth == "api":
        if not api_key:
            raise ValueError("api auth requires an API key")
        return ApiKeyAndSecret(api_key=api_key, api_secret=api_secret)
    if auth == "scram":
        if not username:
            raise ValueError("scram auth requires a username")
        return ScramCredentials(
            scram_username=username,
            scram_password=password,
            hash_algorithm=hash_algorithm or HashAlgorithm.SCRAM_SHA_256.value,
        )
    return None


def build_spec_from_args(args: Any) -> ConnectionSpec:
    """Build a ConnectionSpec from parsed ``connection create`` arguments.

    Raises:
        ValueError: on inconsistent auth flags.
    """
    kafka_cluster = None
    if args.bootstrap_servers:
        kafka_cluster = KafkaClusterConfig(
            bootstrap_servers=args.bootstrap_servers,
            credentials=_credentials_from_args(
                args.kafka_auth,
                args.kafka_username,
                args.kafka_password,
                args.kafka_api_key,
                args.kafka_api_secret,
                args.scram_hash,
            ),
            ssl=TLSConfig(enabled=True) if args.kafka_tls else None,
        )
    elif args.kafka_auth != "none":
        raise ValueError("--kafka-auth requires --bootstrap-servers")

    schema_registry = None
    if args.schema_registry_uri:
        schema_registry = SchemaRegistryConfig(
            uri=args.schema_registry_uri,
            credentials=_credentials_from_args(
                args.sr_auth,
                args.sr_username,
                args.sr_password,
                args.sr_api_key,
                args.sr_api_secret,
            ),
            ssl=TLSConfig(enabled=True) if args.sr_tls else None,
        )
    elif args.sr_auth != "none":
        raise ValueError("--sr-auth requires --schema-registry-uri")

    return ConnectionSpec(
        id=args.connection_id or "",
        name=args.name or "",
        form_connection_type=args.form_type,
        specified_connection_type=args.specified_type,
        kafka_cluster=kafka_cluster,
        schema_registry=schema_registry,
    )


def load_spec_from_file(path: str | Path) -> ConnectionSpec:
    """Read a ConnectionSpec from a JSON file (as printed by ``connection show``).

    Raises:
        ValueError: if the file is not a JSON object.
        OSError: if the file can't be read.
    """
    text = Path(path).expanduser().read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"{path}: invalid JSON ({exc.msg})") from exc
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object")
    return ConnectionSpec.from_dict(data)
