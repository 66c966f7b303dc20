"""CLI prompts for connection secrets."""

from __future__ import annotations

import getpass

from kafkit.domains.connections.domain.config import CREDENTIAL_SECRET_FIELDS, ConnectionSpec

_SECTION_LABELS = {"kafka_cluster": "Kafka", "schema_registry": "Schema Registry"}


def prompt_for_secrets(spec: ConnectionSpec) -> ConnectionSpec:
    """Prompt for credential secrets that were left unset (None). Mutates and returns ``spec``."""
    for section, label in _SECTION_LABELS.items():
        config = getattr(spec, section)
        credentials = getattr(config, "credentials", None)
        if credentials is None:
            continue
        secret_field = CREDENTIAL_SECRET_FIELDS[type(credentials)]
        if getattr(credentials, secret_field) is None:
            value = getpass.getpass(f"{label} {secret_field.replace('_', ' ')} for '{spec.name}': ")
            setattr(credentials, secret_field, value)
    return spec
