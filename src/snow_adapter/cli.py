"""Command-line interface for snow-change-adapter.

Usage:
    # Instance health
    snow-adapter healthcheck

    # Change requests
    snow-adapter change get
    snow-adapter change get --json
    snow-adapter change create --short-description "Patch web tier" --priority 3

    # Configuration
    snow-adapter config show
    snow-adapter config setup
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import TYPE_CHECKING, Any

from snow_adapter.core.exceptions import ConfigurationError, ITSMError
from snow_adapter.core.models import AdapterStatus

if TYPE_CHECKING:
    from snow_adapter.servicenow import ServiceNowAdapter

DEFAULT_ADAPTER_ID = "servicenow"


def build_adapter(args: argparse.Namespace) -> ServiceNowAdapter:
    """Build an adapter from resolved credentials and CLI options."""
    from snow_adapter.servicenow import ServiceNowAdapter, load_adapter_properties

    properties = load_adapter_properties(table=args.table)
    return ServiceNowAdapter(args.id, properties)


def _collect_errors(errors: list[ITSMError]) -> Any:
    """Return a healthcheck callback that records reported errors."""

    def callback(data: Any, error: ITSMError | None) -> None:
        if error is not None:
            errors.append(error)

    return callback


# =============================================================================
# Instance Commands
# =============================================================================


def cmd_healthcheck(args: argparse.Namespace) -> int:
    """Check instance availability."""
    adapter = build_adapter(args)
    statuses: list[str] = []
    for status in AdapterStatus:
        adapter.subscribe(status, lambda payload, s=status.value: statuses.append(s))

    try:
        errors: list[ITSMError] = []
        online = adapter.healthcheck(_collect_errors(errors))
    finally:
        adapter.disconnect()

    print(f"{adapter.id}: {statuses[-1] if statuses else AdapterStatus.OFFLINE.value}")
    if errors:
        print(f"  Reason: {errors[0]}", file=sys.stderr)
    return 0 if online else 1


# =============================================================================
# Change Request Commands
# =============================================================================


def cmd_change_get(args: argparse.Namespace) -> int:
    """List change requests."""
    from snow_adapter.servicenow import unescape_body

    adapter = build_adapter(args)
    try:
        response = adapter.get_record()
    finally:
        adapter.disconnect()

    records = unescape_body(response.body)["result"]
    if args.json:
        print(json.dumps(records, indent=2, default=str))
        return 0

    if not records:
        print("No change requests found")
        return 0

    print(f"Found {len(records)} change request(s):\n")
    for record in records:
        print(f"  {record['change_ticket_number']}: {record['description'] or ''}")
        print(
            f"    Key: {record['change_ticket_key']} | Priority: {record['priority']}"
            f" | Active: {record['active']}"
        )
    return 0


def cmd_change_create(args: argparse.Namespace) -> int:
    """Create a change request."""
    from snow_adapter.servicenow import unescape_body

    payload: dict[str, Any] = {}
    if args.short_description:
        payload["short_description"] = args.short_description
    if args.description:
        payload["description"] = args.description
    if args.priority:
        payload["priority"] = args.priority

    adapter = build_adapter(args)
    try:
        response = adapter.post_record(payload or None)
    finally:
        adapter.disconnect()

    record = unescape_body(response.body)
    print(f"Created {record['change_ticket_number']}")
    print(f"Key: {record['change_ticket_key']}")
    return 0


# =============================================================================
# Config Commands
# =============================================================================


def cmd_config_show(args: argparse.Namespace) -> int:
    """Show current configuration."""
    from snow_adapter.servicenow.credentials import get_credentials, get_table

    print("ServiceNow Adapter Configuration")
    print("=" * 40)

    try:
        creds = get_credentials()
    except ConfigurationError:
        print("\nServiceNow: Not configured")
        print("  Set environment variables or use: snow-adapter config setup")
        return 0

    password = creds.password
    print("\nServiceNow:")
    print(f"  URL:      {creds.url}")
    print(f"  Username: {creds.username}")
    print(f"  Password: {'****' + password[-2:] if len(password) > 4 else '****'}")
    print(f"  Table:    {get_table(args.table)}")
    return 0


def cmd_config_setup(args: argparse.Namespace) -> int:
    """Interactive credential setup."""
    import getpass

    from snow_adapter.servicenow import ServiceNowAdapter
    from snow_adapter.servicenow.credentials import get_table, save_credentials

    print("ServiceNow Adapter - Credential Setup")
    print("=" * 40)

    url = input("Instance URL (e.g., https://dev12345.service-now.com): ").strip()
    if not url:
        print("URL is required", file=sys.stderr)
        return 1

    username = input("Username: ").strip()
    if not username:
        print("Username is required", file=sys.stderr)
        return 1

    password = getpass.getpass("Password (hidden): ").strip()
    if not password:
        print("Password is required", file=sys.stderr)
        return 1

    print("\nTesting credentials...")
    adapter = ServiceNowAdapter(
        args.id,
        {
            "url": url,
            "auth": {"username": username, "password": password},
            "serviceNowTable": get_table(args.table),
        },
    )
    errors: list[ITSMError] = []
    try:
        online = adapter.healthcheck(_collect_errors(errors))
    finally:
        adapter.disconnect()
    if not online:
        print(f"Connection failed: {errors[0] if errors else 'instance offline'}", file=sys.stderr)
        return 1
    print("Connection successful!")

    save_credentials(url.rstrip("/"), username, password, table=args.table)
    print("\nCredentials saved to system keyring.")
    return 0


# =============================================================================
# Main Entry Point
# =============================================================================


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="snow-adapter",
        description="ServiceNow change request adapter CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  snow-adapter healthcheck
  snow-adapter change get --json
  snow-adapter change create --short-description "Patch web tier" --priority 3

  snow-adapter config show
  snow-adapter config setup
        """,
    )
    parser.add_argument("--version", action="version", version="snow-change-adapter 0.1.0")
    parser.add_argument("--id", default=DEFAULT_ADAPTER_ID, help="Adapter instance id")
    parser.add_argument("--table", help="ServiceNow table (default: change_request)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("healthcheck", help="Check instance availability")

    # =========================================================================
    # Change subcommands
    # =========================================================================
    change_parser = subparsers.add_parser("change", help="Change request commands")
    change_sub = change_parser.add_subparsers(dest="change_command", required=True)

    change_get = change_sub.add_parser("get", help="List change requests")
    change_get.add_argument("--json", action="store_true", help="Print records as JSON")

    change_create = change_sub.add_parser("create", help="Create a change request")
    change_create.add_argument("--short-description", help="Short description")
    change_create.add_argument("--description", help="Description")
    change_create.add_argument("--priority", help="Priority (1-5)")

    # =========================================================================
    # Config subcommands
    # =========================================================================
    config_parser = subparsers.add_parser("config", help="Configuration commands")
    config_sub = config_parser.add_subparsers(dest="config_command", required=True)
    config_sub.add_parser("show", help="Show current configuration")
    config_sub.add_parser("setup", help="Interactive credential setup")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    try:
        if args.command == "healthcheck":
            return cmd_healthcheck(args)

        if args.command == "change":
            commands = {
                "get": cmd_change_get,
                "create": cmd_change_create,
            }
            return commands[args.change_command](args)

        if args.command == "config":
            commands = {
                "show": cmd_config_show,
                "setup": cmd_config_setup,
            }
            return commands[args.config_command](args)

    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    except ITSMError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
