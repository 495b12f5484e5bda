#!/usr/bin/env python3
"""
Stateful subscriptions CLI - Main entry point.

Usage:
    stateful-subscriptions init                          # Create default config
    stateful-subscriptions validate                      # Check config file
    stateful-subscriptions inspect '<query>'             # Show parsed subscription
    stateful-subscriptions recover '<query>' --last-value 42   # Preview recovery query
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from ..config import apply_log_level, default_config_path, load_config
from ..core.errors import QuerySyntaxError, SubscriptionConfigError
from ..core.introspector import parse_subscription_query
from ..core.recovery import build_recovery_query
from ..core.registry import SubscriptionRegistry


DEFAULT_CONFIG = '''# Stateful subscriptions configuration
protocol: graphql-ws

subscriptions: []
#  - name: onItems
#    key: offset
#    args:
#      limit: 10
'''


def _parse_json_option(value: Optional[str], option: str):
    if value is None:
        return None
    try:
        return json.loads(value)
    except ValueError as e:
        raise SystemExit(f"Error: {option} is not valid JSON: {e}")


def cmd_init(args: argparse.Namespace) -> int:
    """Create a default config file."""
    config_path = Path(args.config) if args.config else default_config_path()

    if config_path.exists() and not args.force:
        print(f"Error: {config_path} already exists. Use --force to overwrite.")
        return 1

    config_path.write_text(DEFAULT_CONFIG)
    print(f"Created {config_path}")
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Load config and list resumable subscriptions."""
    try:
        config = load_config(args.config)
    except SubscriptionConfigError as e:
        print(f"Error: {e}")
        return 1

    if config is None:
        print(f"Error: {args.config or default_config_path()} not found. Run 'stateful-subscriptions init' first.")
        return 1

    print(f"Protocol: {config.protocol} (start message: {config.default_message_type})")
    if not config.subscriptions:
        print("No subscriptions configured")
        return 0

    for descriptor in config.subscriptions:
        fixed = f" args={json.dumps(descriptor.fixed_args)}" if descriptor.fixed_args else ""
        print(f"  {descriptor.name}: key={descriptor.key}{fixed}")
    return 0


def cmd_inspect(args: argparse.Namespace) -> int:
    """Print the parsed shape of a subscription query."""
    variables = _parse_json_option(args.variables, "--variables")
    if variables is not None and not isinstance(variables, dict):
        print("Error: --variables must be a JSON object")
        return 1

    try:
        info = parse_subscription_query(args.query, variables)
    except QuerySyntaxError as e:
        print(f"Error: {e}")
        return 1

    if info is None:
        print("Not a subscription operation")
        return 0

    print(json.dumps(info.model_dump(exclude={"variables"}), indent=2))
    return 0


def cmd_recover(args: argparse.Namespace) -> int:
    """Preview the recovery query for a subscription."""
    try:
        config = load_config(args.config)
    except SubscriptionConfigError as e:
        print(f"Error: {e}")
        return 1

    if config is None:
        print(f"Error: {args.config or default_config_path()} not found.")
        return 1

    apply_log_level(config)

    variables = {}
    last_value = _parse_json_option(args.last_value, "--last-value")
    if last_value is not None:
        variables["lastValue"] = last_value

    registry = SubscriptionRegistry.from_config(config)
    registry.register_subscription("cli", args.query, variables)

    tracked = next(iter(registry.get_client_subscriptions("cli").values()), None)
    if tracked is None:
        print("Query is not a configured subscription (or could not be parsed)")
        return 1

    print(build_recovery_query(tracked))
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="stateful-subscriptions",
        description="Stateful subscriptions - resumable GraphQL subscriptions"
    )
    parser.add_argument("--version", action="version", version="%(prog)s 0.1.0")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init
    init_parser = subparsers.add_parser("init", help="Create default config")
    init_parser.add_argument("--config", "-c", help="Config file path")
    init_parser.add_argument("--force", "-f", action="store_true", help="Overwrite existing config")

    # validate
    validate_parser = subparsers.add_parser("validate", help="Validate config file")
    validate_parser.add_argument("--config", "-c", help="Config file path")

    # inspect
    inspect_parser = subparsers.add_parser("inspect", help="Show parsed subscription query")
    inspect_parser.add_argument("query", help="GraphQL query text")
    inspect_parser.add_argument("--variables", "-v", help="Variables as JSON object")

    # recover
    recover_parser = subparsers.add_parser("recover", help="Preview recovery query")
    recover_parser.add_argument("query", help="GraphQL query text")
    recover_parser.add_argument("--config", "-c", help="Config file path")
    recover_parser.add_argument("--last-value", "-l", help="Cursor value as JSON")

    return parser


def app(args: Optional[List[str]] = None) -> int:
    """Main CLI application."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    if not parsed.command:
        parser.print_help()
        return 0

    commands = {
        "init": cmd_init,
        "validate": cmd_validate,
        "inspect": cmd_inspect,
        "recover": cmd_recover,
    }

    handler = commands.get(parsed.command)
    if handler:
        return handler(parsed)

    parser.print_help()
    return 1


def main() -> None:
    """Entry point for CLI."""
    sys.exit(app())


if __name__ == "__main__":
    main()
