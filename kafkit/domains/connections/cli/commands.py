"""CLI command handlers for kafkit."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from kafkit.domains.connections.app.client import ApiError
from kafkit.domains.connections.app.credentials import is_keyring_usable
from kafkit.domains.connections.domain.secrets import get_secret, redact_secrets, secret_paths

from .helpers import build_spec_from_args, load_spec_from_file
from .prompts import prompt_for_secrets

if TYPE_CHECKING:
    from kafkit.domains.connections.app.manager import ConnectionResult, DirectConnectionManager
    from kafkit.domains.connections.domain.config import ConnectionSpec

logger = logging.getLogger(__name__)

console = Console(highlight=False)


def _error(message: str) -> int:
    console.print(f"[red]Error:[/red] {escape(message)}")
    return 1


def _get_manager() -> DirectConnectionManager:
    from kafkit.domains.connections.app.manager import DirectConnectionManager

    return DirectConnectionManager.get_instance()


def _has_secrets(spec: ConnectionSpec) -> bool:
    return any(get_secret(spec, path) for path in secret_paths(spec))


def _report(result: ConnectionResult, success: str) -> int:
    if not result.ok:
        return _error(result.error_message or "unknown error")
    console.print(success)
    return 0


def cmd_connection_list(args: Any) -> int:
    """List all stored direct connections."""
    store = _get_manager().store
    specs = store.get_all(load_secrets=False)
    if not specs:
        console.print("No saved connections.")
        return 0

    table = Table("ID", "Name", "Type", "Kafka", "Schema Registry")
    for spec in specs.values():
        table.add_row(
            spec.id,
            spec.name,
            spec.specified_connection_type or spec.form_connection_type,
            spec.kafka_cluster.bootstrap_servers if spec.kafka_cluster else "-",
            spec.schema_registry.uri if spec.schema_registry else "-",
        )
    console.print(table)
    return 0


def cmd_connection_show(args: Any) -> int:
    """Print a stored connection as JSON with secrets replaced by placeholders."""
    import requests

    manager = _get_manager()
    spec = manager.store.get(args.connection_id)
    if spec is None:
        return _error(f"Connection '{args.connection_id}' not found.")
    console.print_json(json.dumps(redact_secrets(spec).to_dict()))
    if not args.status:
        return 0

    try:
        connection = manager.client.get_connection(spec.id)
    except (ApiError, requests.RequestException) as exc:
        return _error(f"Could not reach the connection gateway: {exc}")
    if connection is None:
        console.print("[yellow]Not known to the gateway;[/yellow] run 'kafkit connection rehydrate'.")
        return 1
    console.print("Gateway status:")
    console.print_json(json.dumps(connection.status))
    return 0


def cmd_connection_create(args: Any) -> int:
    """Create (or with --test, only test) a direct connection."""
    try:
        spec = load_spec_from_file(args.from_file) if args.from_file else build_spec_from_args(args)
    except (OSError, ValueError) as exc:
        return _error(str(exc))

    if sys.stdin.isatty():
        prompt_for_secrets(spec)

    manager = _get_manager()
    if not args.test and _has_secrets(spec) and not is_keyring_usable():
        console.print("[yellow]Warning:[/yellow] secrets will only be kept for this session.")

    result = asyncio.run(manager.create_connection(spec, dry_run=args.test))
    if args.test:
        return _report(result, f"Connection test for '{escape(spec.name)}' succeeded.")
    connection_id = result.connection.id if result.connection else spec.id
    return _report(result, f"Connection '{escape(spec.name)}' created ({connection_id}).")


def cmd_connection_update(args: Any) -> int:
    """Update a stored connection from a JSON file; placeholder secrets keep stored values."""
    try:
        spec = load_spec_from_file(args.from_file)
    except (OSError, ValueError) as exc:
        return _error(str(exc))
    spec.id = args.connection_id

    result = asyncio.run(_get_manager().update_connection(spec))
    return _report(result, f"Connection '{escape(spec.name)}' updated.")


def cmd_connection_delete(args: Any) -> int:
    """Delete a connection locally and in the gateway."""
    deleted = asyncio.run(_get_manager().delete_connection(args.connection_id))
    if not deleted:
        return _error(f"Connection '{args.connection_id}' not found.")
    console.print(f"Connection '{escape(args.connection_id)}' deleted.")
    return 0


def cmd_connection_rehydrate(args: Any) -> int:
    """Recreate stored connections the gateway doesn't know about."""
    import requests

    try:
        recreated = asyncio.run(_get_manager().rehydrate_connections())
    except (ApiError, requests.RequestException) as exc:
        return _error(f"Could not reach the connection gateway: {exc}")
    if not recreated:
        console.print("All stored connections are known to the gateway.")
        return 0
    console.print(f"Recreated {len(recreated)} connection(s): {', '.join(recreated)}")
    return 0


def cmd_schema_access(args: Any) -> int:
    """Check whether the topic's key or value schema is readable.

    Exit status is 0 when access is granted and 1 when it is denied.
    """
    from kafkit.domains.authz.schema_registry import can_access_schema_for_topic, no_schema_access_warning
    from kafkit.domains.explorer.domain.resources import KafkaTopic
    from kafkit.domains.shell.store.settings import RuntimeSettings

    manager = _get_manager()
    spec = manager.store.get(args.connection_id)
    if spec is None:
        return _error(f"Connection '{args.connection_id}' not found.")

    topic = KafkaTopic(name=args.topic, connection_id=spec.id)
    allowed = asyncio.run(can_access_schema_for_topic(topic, manager.client, spec))
    if allowed:
        console.print(f"Schema access for topic '{escape(args.topic)}': granted")
        return 0
    console.print(f"Schema access for topic '{escape(args.topic)}': denied")
    warning = no_schema_access_warning(RuntimeSettings.load().schema_rbac_warnings_enabled)
    if warning:
        console.print(f"[yellow]{escape(warning)}[/yellow]")
    return 1


def cmd_explore(args: Any) -> int:
    """Open the Textual explorer after making sure the gateway knows our connections."""
    import requests

    from kafkit.domains.explorer.ui.app import ExplorerApp

    manager = _get_manager()
    try:
        asyncio.run(manager.rehydrate_connections())
    except (ApiError, requests.RequestException) as exc:
        logger.warning("cmd_explore: rehydration failed, continuing with stored connections: %s", exc)
    manager.sync_resource_loaders()

    ExplorerApp().run()
    return 0


__all__ = [
    "cmd_connection_create",
    "cmd_connection_delete",
    "cmd_connection_list",
    "cmd_connection_rehydrate",
    "cmd_connection_show",
    "cmd_connection_update",
    "cmd_explore",
    "cmd_schema_access",
]
