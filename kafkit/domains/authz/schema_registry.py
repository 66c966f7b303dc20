"""Schema Registry read-access checks for topics.

Schema Registry has no endpoint answering "may I read this subject?", so we
look the conventional subjects up and read the answer off the error codes.
A subject that doesn't exist yet (404 with 40401/40403, or a bare 404)
counts as accessible: "granted" really means "granted, or nothing there to
deny yet". Callers rely on that, so it is kept.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any, Literal

from kafkit.domains.connections.app.client import ApiError
from kafkit.domains.explorer.domain.resources import topic_subject_names

if TYPE_CHECKING:
    from kafkit.domains.connections.app.client import ConnectionsApiClient
    from kafkit.domains.connections.domain.config import ConnectionSpec
    from kafkit.domains.explorer.domain.resources import KafkaTopic

logger = logging.getLogger(__name__)

SchemaType = Literal["key", "value"]

SUBJECT_NOT_FOUND = 40401
SCHEMA_NOT_FOUND = 40403
NOT_FOUND_ERROR_CODES = frozenset({SUBJECT_NOT_FOUND, SCHEMA_NOT_FOUND})

NO_SCHEMA_ACCESS_WARNING = (
    "You do not have permission to read schemas for this topic. "
    "Messages may be shown without deserialization."
)


def _error_code_from_body(body: Any) -> int | None:
    if isinstance(body, (bytes, str)):
        try:
            body = json.loads(body)
        except (json.JSONDecodeError, TypeError, ValueError):
            return None
    if not isinstance(body, dict):
        return None
    code = body.get("error_code")
    try:
        return int(code) if code is not None else None
    except (TypeError, ValueError):
        return None


def determine_access_from_response_error(status: int, body: Any = None) -> bool:
    """Decide read access from a failed subject lookup.

    Args:
        status: HTTP status of the failed lookup.
        body: Response body (JSON text, bytes or an already-parsed dict).

    Returns:
        True for "not found" style 404s, False for everything else.
    """
    if status != 404:
        return False
    code = _error_code_from_body(body)
    if code is None:
        return True
    return code in NOT_FOUND_ERROR_CODES


async def can_access_schema_type_for_topic(
    topic: KafkaTopic,
    schema_type: SchemaType,
    client: ConnectionsApiClient,
    spec: ConnectionSpec | None = None,
) -> bool:
    """Check read access to the topic's key or value subject.

    A connection without a Schema Registry has nothing to guard, so that is
    reported as accessible. Anything unexpected fails closed.
    """
    if spec is not None and spec.schema_registry is None:
        return True

    key_subject, value_subject = topic_subject_names(topic.name)
    subject = key_subject if schema_type == "key" else value_subject
    try:
        await asyncio.to_thread(client.list_subject_versions, topic.connection_id, subject)
    except ApiError as error:
        allowed = determine_access_from_response_error(error.status, error.body)
        logger.debug(
            "subject lookup for %s on %s returned %s (code=%s) -> access=%s",
            subject,
            topic.connection_id,
            error.status,
            error.error_code,
            allowed,
        )
        return allowed
    except Exception as error:
        logger.warning("can_access_schema_type_for_topic(%s, %s): %s", topic.name, schema_type, error)
        return False
    return True


async def can_access_schema_for_topic(
    topic: KafkaTopic,
    client: ConnectionsApiClient,
    spec: ConnectionSpec | None = None,
) -> bool:
    """True if either the key or the value subject of the topic is readable."""
    key_access, value_access = await asyncio.gather(
        can_access_schema_type_for_topic(topic, "key", client, spec),
        can_access_schema_type_for_topic(topic, "value", client, spec),
    )
    return key_access or value_access


def no_schema_access_warning(warnings_enabled: bool = True) -> str | None:
    """Warning to show when schema access is denied, unless the user turned it off."""
    if not warnings_enabled:
        return None
    return NO_SCHEMA_ACCESS_WARNING
