"""Connection domain models for direct Kafka / Schema Registry connections."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Union


class ConnectionType(str, Enum):
    """Connection type tag as understood by the connection gateway."""

    DIRECT = "DIRECT"
    LOCAL = "LOCAL"
    CCLOUD = "CCLOUD"


class FormConnectionType(str, Enum):
    """What the user told us they are connecting to."""

    APACHE_KAFKA = "Apache Kafka"
    CONFLUENT_CLOUD = "Confluent Cloud"
    CONFLUENT_PLATFORM = "Confluent Platform"
    OTHER = "Other"


class HashAlgorithm(str, Enum):
    SCRAM_SHA_256 = "SCRAM_SHA_256"
    SCRAM_SHA_512 = "SCRAM_SHA_512"


@dataclass
class BasicCredentials:
    username: str
    password: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"username": self.username, "password": self.password}


@dataclass
class ApiKeyAndSecret:
    api_key: str
    api_secret: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"api_key": self.api_key, "api_secret": self.api_secret}


@dataclass
class ScramCredentials:
    scram_username: str
    scram_password: str | None = None
    hash_algorithm: str = HashAlgorithm.SCRAM_SHA_256.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "hash_algorithm": self.hash_algorithm,
            "scram_username": self.scram_username,
            "scram_password": self.scram_password,
        }


Credentials = Union[BasicCredentials, ApiKeyAndSecret, ScramCredentials]

# Name of the secret-bearing field for each credential variant.
CREDENTIAL_SECRET_FIELDS: dict[type, str] = {
    BasicCredentials: "password",
    ApiKeyAndSecret: "api_secret",
    ScramCredentials: "scram_password",
}


def credentials_from_dict(data: Mapping[str, Any] | None) -> Credentials | None:
    """Build the credential variant matching the keys present in ``data``."""
    if not data:
        return None
    if "scram_username" in data or "scram_password" in data:
        return ScramCredentials(
            scram_username=str(data.get("scram_username") or ""),
            scram_password=data.get("scram_password"),
            hash_algorithm=str(data.get("hash_algorithm") or HashAlgorithm.SCRAM_SHA_256.value),
        )
    if "api_key" in data or "api_secret" in data:
        return ApiKeyAndSecret(api_key=str(data.get("api_key") or ""), api_secret=data.get("api_secret"))
    if "username" in data or "password" in data:
        return BasicCredentials(username=str(data.get("username") or ""), password=data.get("password"))
    return None


@dataclass
class TrustStore:
    path: str
    password: str | None = None
    type: str = "JKS"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> TrustStore | None:
        if not data:
            return None
        return cls(path=str(data.get("path") or ""), password=data.get("password"), type=str(data.get("type") or "JKS"))

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "password": self.password, "type": self.type}


@dataclass
class KeyStore:
    path: str
    password: str | None = None
    key_password: str | None = None
    type: str = "JKS"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> KeyStore | None:
        if not data:
            return None
        return cls(
            path=str(data.get("path") or ""),
            password=data.get("password"),
            key_password=data.get("key_password"),
            type=str(data.get("type") or "JKS"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "password": self.password,
            "key_password": self.key_password,
            "type": self.type,
        }


@dataclass
class TLSConfig:
    """TLS settings; ``enabled=None`` means "left unset"."""

    enabled: bool | None = None
    verify_hostname: bool | None = None
    truststore: TrustStore | None = None
    keystore: KeyStore | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> TLSConfig | None:
        if data is None:
            return None
        return cls(
            enabled=data.get("enabled"),
            verify_hostname=data.get("verify_hostname"),
            truststore=TrustStore.from_dict(data.get("truststore")),
            keystore=KeyStore.from_dict(data.get("keystore")),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.enabled is not None:
            data["enabled"] = self.enabled
        if self.verify_hostname is not None:
            data["verify_hostname"] = self.verify_hostname
        if self.truststore is not None:
            data["truststore"] = self.truststore.to_dict()
        if self.keystore is not None:
            data["keystore"] = self.keystore.to_dict()
        return data


@dataclass
class KafkaClusterConfig:
    bootstrap_servers: str
    credentials: Credentials | None = None
    ssl: TLSConfig | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> KafkaClusterConfig | None:
        if data is None:
            return None
        return cls(
            bootstrap_servers=str(data.get("bootstrap_servers") or ""),
            credentials=credentials_from_dict(data.get("credentials")),
            ssl=TLSConfig.from_dict(data.get("ssl")),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"bootstrap_servers": self.bootstrap_servers}
        if self.credentials is not None:
            data["credentials"] = self.credentials.to_dict()
        if self.ssl is not None:
            data["ssl"] = self.ssl.to_dict()
        return data


@dataclass
class SchemaRegistryConfig:
    uri: str
    credentials: Credentials | None = None
    ssl: TLSConfig | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> SchemaRegistryConfig | None:
        if data is None:
            return None
        return cls(
            uri=str(data.get("uri") or ""),
            credentials=credentials_from_dict(data.get("credentials")),
            ssl=TLSConfig.from_dict(data.get("ssl")),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"uri": self.uri}
        if self.credentials is not None:
            data["credentials"] = self.credentials.to_dict()
        if self.ssl is not None:
            data["ssl"] = self.ssl.to_dict()
        return data


@dataclass
class ConnectionSpec:
    """Direct connection configuration.

    The same shape is used for what we persist (stored spec, real secrets),
    what the user submits (pending spec, possibly placeholder secrets) and what
    the gateway returns.
    """

    id: str
    name: str
    type: str = ConnectionType.DIRECT.value
    form_connection_type: str = FormConnectionType.APACHE_KAFKA.value
    # Free text describing the system when form_connection_type is "Other"
    specified_connection_type: str | None = None
    kafka_cluster: KafkaClusterConfig | None = None
    schema_registry: SchemaRegistryConfig | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ConnectionSpec:
        """Create a ConnectionSpec from the gateway's snake_case representation."""
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            type=str(data.get("type") or ConnectionType.DIRECT.value),
            form_connection_type=str(
                data.get("form_connection_type") or data.get("formConnectionType") or FormConnectionType.APACHE_KAFKA.value
            ),
            specified_connection_type=data.get("specified_connection_type") or data.get("specifiedConnectionType"),
            kafka_cluster=KafkaClusterConfig.from_dict(data.get("kafka_cluster")),
            schema_registry=SchemaRegistryConfig.from_dict(data.get("schema_registry")),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "form_connection_type": self.form_connection_type,
        }
        if self.specified_connection_type:
            data["specified_connection_type"] = self.specified_connection_type
        if self.kafka_cluster is not None:
            data["kafka_cluster"] = self.kafka_cluster.to_dict()
        if self.schema_registry is not None:
            data["schema_registry"] = self.schema_registry.to_dict()
        return data

    def to_api_dict(self) -> dict[str, Any]:
        """Payload for the gateway, which knows nothing about the form fields."""
        data = self.to_dict()
        data.pop("form_connection_type", None)
        data.pop("specified_connection_type", None)
        return data

    @property
    def is_direct(self) -> bool:
        return self.type == ConnectionType.DIRECT.value


@dataclass
class Connection:
    """A connection as reported by the gateway."""

    id: str
    spec: ConnectionSpec
    status: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Connection:
        spec = ConnectionSpec.from_dict(data.get("spec") or {})
        conn_id = str(data.get("id") or spec.id)
        if not spec.id:
            spec.id = conn_id
        status = data.get("status")
        return cls(id=conn_id, spec=spec, status=dict(status) if isinstance(status, dict) else {})
