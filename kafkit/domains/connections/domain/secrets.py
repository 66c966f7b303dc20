"""Secret handling for connection specs.

Editable surfaces (the CLI export, the edit form) never get to see real
secrets: they receive :data:`PLACEHOLDER_SECRET` instead. When the user
submits the spec back, :func:`merge_secrets` swaps each untouched placeholder
for the real value we have stored, leaving genuinely changed secrets alone.
"""

from __future__ import annotations

import copy
from typing import Any, Iterator

from kafkit.domains.connections.domain.config import (
    CREDENTIAL_SECRET_FIELDS,
    ConnectionSpec,
    Credentials,
    KafkaClusterConfig,
    SchemaRegistryConfig,
    TLSConfig,
)

PLACEHOLDER_SECRET = "fakeplaceholdersecrethere"

SECTIONS = ("kafka_cluster", "schema_registry")

_SECRET_SUFFIXES = (
    "credentials.password",
    "credentials.api_secret",
    "credentials.scram_password",
    "ssl.truststore.password",
    "ssl.keystore.password",
    "ssl.keystore.key_password",
)

ALL_SECRET_PATHS = tuple(f"{section}.{suffix}" for section in SECTIONS for suffix in _SECRET_SUFFIXES)


def _resolve_parent(spec: ConnectionSpec, path: str) -> tuple[Any, str] | None:
    """Walk ``path`` and return (owning object, attribute name), or None if absent."""
    *parents, attr = path.split(".")
    current: Any = spec
    for part in parents:
        current = getattr(current, part, None)
        if current is None:
            return None
    if attr not in getattr(current, "__dataclass_fields__", {}):
        return None
    return current, attr


def get_secret(spec: ConnectionSpec | None, path: str) -> str | None:
    """Return the secret at ``path`` (e.g. ``kafka_cluster.credentials.password``)."""
    if spec is None:
        return None
    resolved = _resolve_parent(spec, path)
    if resolved is None:
        return None
    owner, attr = resolved
    return getattr(owner, attr)


def set_secret(spec: ConnectionSpec, path: str, value: str | None) -> bool:
    """Set the secret at ``path`` in place.

    Returns:
        False when the structure holding that secret does not exist in ``spec``.
    """
    resolved = _resolve_parent(spec, path)
    if resolved is None:
        return False
    owner, attr = resolved
    setattr(owner, attr, value)
    return True


def secret_paths(spec: ConnectionSpec) -> Iterator[str]:
    """Yield every secret path whose holder exists in ``spec`` (value may be None)."""
    for path in ALL_SECRET_PATHS:
        if _resolve_parent(spec, path) is not None:
            yield path


def redact_secrets(spec: ConnectionSpec) -> ConnectionSpec:
    """Return a copy with every non-empty secret replaced by the placeholder."""
    redacted = copy.deepcopy(spec)
    for path in list(secret_paths(redacted)):
        if get_secret(redacted, path):
            set_secret(redacted, path, PLACEHOLDER_SECRET)
    return redacted


def _merge_credentials(stored: Credentials | None, pending: Credentials | None) -> None:
    if pending is None or stored is None:
        return
    # Only the same credential variant carries a comparable secret.
    if type(stored) is not type(pending):
        return
    attr = CREDENTIAL_SECRET_FIELDS[type(pending)]
    stored_value = getattr(stored, attr)
    if getattr(pending, attr) == PLACEHOLDER_SECRET and stored_value is not None:
        setattr(pending, attr, stored_value)


def _merge_tls(stored: TLSConfig | None, pending: TLSConfig | None) -> TLSConfig:
    """Combine TLS settings: pending wins, stored fills gaps, TLS defaults to enabled."""
    stored = stored or TLSConfig()
    merged = copy.deepcopy(pending) if pending is not None else TLSConfig()

    if merged.truststore is not None and stored.truststore is not None:
        if merged.truststore.password == PLACEHOLDER_SECRET and stored.truststore.password:
            merged.truststore.password = stored.truststore.password
    if merged.keystore is not None and stored.keystore is not None:
        if merged.keystore.password == PLACEHOLDER_SECRET and stored.keystore.password:
            merged.keystore.password = stored.keystore.password
        if merged.keystore.key_password == PLACEHOLDER_SECRET and stored.keystore.key_password:
            merged.keystore.key_password = stored.keystore.key_password

    if merged.enabled is None:
        merged.enabled = stored.enabled if stored.enabled is not None else True
    if merged.verify_hostname is None:
        merged.verify_hostname = stored.verify_hostname
    if merged.truststore is None and stored.truststore is not None:
        merged.truststore = copy.deepcopy(stored.truststore)
    if merged.keystore is None and stored.keystore is not None:
        merged.keystore = copy.deepcopy(stored.keystore)
    return merged


def merge_secrets(stored: ConnectionSpec, pending: ConnectionSpec) -> ConnectionSpec:
    """Produce a submit-safe spec from a pending spec and the stored one.

    Every secret in ``pending`` that still equals :data:`PLACEHOLDER_SECRET`
    is replaced with the stored secret at the same path (same sub-config,
    same credential variant). Anything else, including an empty string, is
    an intentional change and is kept. Non-secret fields always come from
    ``pending``. Neither input is mutated.
    """
    merged = copy.deepcopy(pending)

    stored_kafka: KafkaClusterConfig | None = stored.kafka_cluster
    if merged.kafka_cluster is not None:
        _merge_credentials(stored_kafka.credentials if stored_kafka else None, merged.kafka_cluster.credentials)
        merged.kafka_cluster.ssl = _merge_tls(stored_kafka.ssl if stored_kafka else None, merged.kafka_cluster.ssl)

    stored_registry: SchemaRegistryConfig | None = stored.schema_registry
    if merged.schema_registry is not None:
        _merge_credentials(
            stored_registry.credentials if stored_registry else None,
            merged.schema_registry.credentials,
        )
        merged.schema_registry.ssl = _merge_tls(
            stored_registry.ssl if stored_registry else None,
            merged.schema_registry.ssl,
        )

    return merged


def has_placeholder_secrets(spec: ConnectionSpec) -> bool:
    """True if any secret in ``spec`` still holds the placeholder."""
    return any(get_secret(spec, path) == PLACEHOLDER_SECRET for path in secret_paths(spec))
