#!/usr/bin/env python3
"""kafkit - A terminal UI for direct Kafka and Schema Registry connections."""

from __future__ import annotations

import argparse
import os
import sys

from kafkit.domains.connections.cli.helpers import add_spec_arguments


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kafkit",
        description="Manage direct Kafka / Schema Registry connections and browse their resources",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log debug output to stderr")
    parser.add_argument(
        "--settings",
        metavar="PATH",
        help="Path to settings JSON file (overrides ~/.kafkit/settings.json)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    conn_parser = subparsers.add_parser(
        "connections",
        help="Manage saved connections",
        aliases=["connection"],
    )
    conn_subparsers = conn_parser.add_subparsers(dest="conn_command", help="Connection commands")

    conn_subparsers.add_parser("list", help="List all saved connections")

    show_parser = conn_subparsers.add_parser("show", help="Show a connection (secrets redacted)")
    show_parser.add_argument("connection_id", help="Connection id")
    show_parser.add_argument(
        "--status",
        action="store_true",
        help="Also show the status the gateway reports for the connection",
    )

    create_parser = conn_subparsers.add_parser("create", help="Create a new connection", aliases=["add"])
    create_parser.add_argument("--from-file", metavar="PATH", help="Read the connection from a JSON file")
    create_parser.add_argument("--test", action="store_true", help="Only test the connection, don't save it")
    add_spec_arguments(create_parser)

    update_parser = conn_subparsers.add_parser("update", help="Update a connection from a JSON file")
    update_parser.add_argument("connection_id", help="Connection id")
    update_parser.add_argument(
        "--from-file",
        metavar="PATH",
        required=True,
        help="JSON file as printed by 'connection show'; placeholder secrets keep stored values",
    )

    delete_parser = conn_subparsers.add_parser("delete", help="Delete a connection")
    delete_parser.add_argument("connection_id", help="Connection id")

    conn_subparsers.add_parser("rehydrate", help="Recreate stored connections in the gateway")

    access_parser = subparsers.add_parser("schema-access", help="Check schema read access for a topic")
    access_parser.add_argument("connection_id", help="Connection id")
    access_parser.add_argument("topic", help="Topic name")

    subparsers.add_parser("explore", help="Browse connections, topics and subjects")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    if args.settings:
        os.environ["KAFKIT_SETTINGS_PATH"] = str(args.settings)

    from kafkit.domains.shell.store.settings import RuntimeSettings
    from kafkit.shared.core.logs import configure_logging

    configure_logging("DEBUG" if args.verbose else RuntimeSettings.load().log_level)

    from kafkit.domains.connections.cli.commands import (
        cmd_connection_create,
        cmd_connection_delete,
        cmd_connection_list,
        cmd_connection_rehydrate,
        cmd_connection_show,
        cmd_connection_update,
        cmd_explore,
        cmd_schema_access,
    )

    if args.command is None or args.command == "explore":
        return cmd_explore(args)

    if args.command in {"connections", "connection"}:
        if args.conn_command == "list":
            return cmd_connection_list(args)
        elif args.conn_command == "show":
            return cmd_connection_show(args)
        elif args.conn_command in {"create", "add"}:
            return cmd_connection_create(args)
        elif args.conn_command == "update":
            return cmd_connection_update(args)
        elif args.conn_command == "delete":
            return cmd_connection_delete(args)
        elif args.conn_command == "rehydrate":
            return cmd_connection_rehydrate(args)
        else:
            parser.print_help()
            return 1

    if args.command == "schema-access":
        return cmd_schema_access(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
