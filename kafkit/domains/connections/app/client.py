"""HTTP client for the connection gateway's REST API."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, cast
from urllib.parse import quote

from kafkit.domains.connections.domain.config import Connection, ConnectionSpec

if TYPE_CHECKING:
    import requests

logger = logging.getLogger(__name__)

CONNECTIONS_PATH = "/gateway/v1/connections"
CONNECTION_ID_HEADER = "x-connection-id"
CLUSTER_ID_HEADER = "x-cluster-id"


class ApiError(Exception):
    """Non-2xx response from the gateway (or a service proxied by it)."""

    def __init__(self, status: int, message: str, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.message = message
        self.body = body

    @property
    def error_code(self) -> int | None:
        """Schema Registry style ``error_code`` from a JSON body, if any."""
        if not self.body:
            return None
        try:
            data = json.loads(self.body)
        except (json.JSONDecodeError, TypeError):
            return None
        if not isinstance(data, dict):
            return None
        code = data.get("error_code")
        try:
            return int(code) if code is not None else None
        except (TypeError, ValueError):
            return None

    def __str__(self) -> str:
        return f"{self.status} {self.message}" + (f": {self.body}" if self.body else "")


class ConnectionsApiClient:
    """Thin wrapper over the gateway's connection and proxy endpoints.

    All methods are blocking; async callers run them via ``asyncio.to_thread``.
    """

    def __init__(
        self,
        base_url: str,
        session: requests.Session | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            import requests

            self._session = requests.Session()
            self._session.headers.update({"Accept": "application/json"})
        return self._session

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        payload: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        response = self.session.request(
            method,
            url,
            params=params,
            json=payload,
            headers=headers,
            timeout=self.timeout,
        )
        if not response.ok:
            raise ApiError(response.status_code, str(response.reason or "Request failed"), response.text or "")
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def list_connections(self) -> list[Connection]:
        data = self._request("GET", CONNECTIONS_PATH)
        items = data.get("data", []) if isinstance(data, dict) else []
        return [Connection.from_dict(item) for item in items if isinstance(item, dict)]

    def get_connection(self, connection_id: str) -> Connection | None:
        try:
            data = self._request("GET", f"{CONNECTIONS_PATH}/{quote(connection_id, safe='')}")
        except ApiError as error:
            if error.status == 404:
                logger.debug("No connection found: %s", connection_id)
                return None
            raise
        return Connection.from_dict(cast(dict, data))

    def create_connection(self, spec: ConnectionSpec, dry_run: bool = False) -> Connection:
        data = self._request(
            "POST",
            CONNECTIONS_PATH,
            params={"dry_run": "true"} if dry_run else None,
            payload=spec.to_api_dict(),
        )
        logger.debug("%s connection %s", "tested" if dry_run else "created", spec.id)
        return Connection.from_dict(cast(dict, data or {"id": spec.id, "spec": spec.to_api_dict()}))

    def update_connection(self, spec: ConnectionSpec) -> Connection:
        data = self._request(
            "PATCH",
            f"{CONNECTIONS_PATH}/{quote(spec.id, safe='')}",
            payload=spec.to_api_dict(),
        )
        logger.debug("updated connection %s", spec.id)
        return Connection.from_dict(cast(dict, data or {"id": spec.id, "spec": spec.to_api_dict()}))

    def delete_connection(self, connection_id: str) -> None:
        """Delete a connection; a 404 means it is already gone."""
        try:
            self._request("DELETE", f"{CONNECTIONS_PATH}/{quote(connection_id, safe='')}")
        except ApiError as error:
            if error.status == 404:
                logger.debug("no connection found to delete: %s", connection_id)
                return
            raise
        logger.debug("deleted connection %s", connection_id)

    def list_topics(self, connection_id: str) -> list[dict[str, Any]]:
        """List topics of the connection's Kafka cluster through the Kafka REST v3 proxy."""
        headers = {CONNECTION_ID_HEADER: connection_id}
        clusters = self._request("GET", "/kafka/v3/clusters", headers=headers)
        cluster_items = clusters.get("data", []) if isinstance(clusters, dict) else []
        if not cluster_items:
            return []
        cluster_id = str(cluster_items[0].get("cluster_id", ""))
        topics = self._request(
            "GET",
            f"/kafka/v3/clusters/{quote(cluster_id, safe='')}/topics",
            headers={**headers, CLUSTER_ID_HEADER: cluster_id},
        )
        items = topics.get("data", []) if isinstance(topics, dict) else []
        return [item for item in items if isinstance(item, dict)]

    def list_subjects(self, connection_id: str) -> list[str]:
        data = self._request("GET", "/subjects", headers={CONNECTION_ID_HEADER: connection_id})
        return [str(s) for s in data] if isinstance(data, list) else []

    def list_subject_versions(self, connection_id: str, subject: str) -> list[int]:
        data = self._request(
            "GET",
            f"/subjects/{quote(subject, safe='')}/versions",
            headers={CONNECTION_ID_HEADER: connection_id},
        )
        return [int(v) for v in data] if isinstance(data, list) else []
