"""Tests for the Schema Registry read-access check."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from kafkit.domains.authz.schema_registry import (
    NO_SCHEMA_ACCESS_WARNING,
    can_access_schema_for_topic,
    can_access_schema_type_for_topic,
    determine_access_from_response_error,
    no_schema_access_warning,
)
from kafkit.domains.connections.app.client import ApiError, ConnectionsApiClient
from kafkit.domains.explorer.domain.resources import KafkaTopic


@pytest.mark.parametrize(
    ("status", "body", "expected"),
    [
        (404, '{"error_code": 40401}', True),
        (404, '{"error_code": 40403}', True),
        (404, "", True),
        (404, None, True),
        (404, {"error_code": 40401}, True),
        (404, '{"error_code": 40499}', False),
        (403, "", False),
        (401, "", False),
        (403, '{"error_code": 40301}', False),
        (500, '{"error_code": 50001}', False),
    ],
)
def test_decision_table(status: int, body, expected: bool) -> None:
    assert determine_access_from_response_error(status, body) is expected


@pytest.fixture
def topic() -> KafkaTopic:
    return KafkaTopic(name="orders", connection_id="conn-1")


@pytest.fixture
def sr_client() -> MagicMock:
    return MagicMock(spec=ConnectionsApiClient)


class TestReadAccessCheck:
    @pytest.mark.asyncio
    async def test_success_is_access(self, topic, sr_client) -> None:
        sr_client.list_subject_versions.return_value = [1]

        assert await can_access_schema_type_for_topic(topic, "value", sr_client) is True
        sr_client.list_subject_versions.assert_called_once_with("conn-1", "orders-value")

    @pytest.mark.asyncio
    async def test_missing_subject_is_access(self, topic, sr_client) -> None:
        sr_client.list_subject_versions.side_effect = ApiError(404, "Not Found", '{"error_code": 40401}')
        assert await can_access_schema_type_for_topic(topic, "key", sr_client) is True

    @pytest.mark.asyncio
    async def test_forbidden_is_denied(self, topic, sr_client) -> None:
        sr_client.list_subject_versions.side_effect = ApiError(403, "Forbidden", '{"error_code": 40301}')
        assert await can_access_schema_type_for_topic(topic, "key", sr_client) is False

    @pytest.mark.asyncio
    async def test_unexpected_error_fails_closed(self, topic, sr_client) -> None:
        sr_client.list_subject_versions.side_effect = RuntimeError("socket closed")
        assert await can_access_schema_type_for_topic(topic, "value", sr_client) is False

    @pytest.mark.asyncio
    async def test_no_schema_registry_configured(self, topic, sr_client, make_spec) -> None:
        spec = make_spec(with_schema_registry=False)
        assert await can_access_schema_type_for_topic(topic, "value", sr_client, spec) is True
        sr_client.list_subject_versions.assert_not_called()

    @pytest.mark.asyncio
    async def test_key_or_value(self, topic, sr_client) -> None:
        def versions(connection_id: str, subject: str) -> list[int]:
            if subject.endswith("-key"):
                raise ApiError(403, "Forbidden")
            return [1]

        sr_client.list_subject_versions.side_effect = versions
        assert await can_access_schema_for_topic(topic, sr_client) is True

    @pytest.mark.asyncio
    async def test_both_denied(self, topic, sr_client) -> None:
        sr_client.list_subject_versions.side_effect = ApiError(401, "Unauthorized")
        assert await can_access_schema_for_topic(topic, sr_client) is False


def test_warning_can_be_disabled() -> None:
    assert no_schema_access_warning(True) == NO_SCHEMA_ACCESS_WARNING
    assert no_schema_access_warning(False) is None
