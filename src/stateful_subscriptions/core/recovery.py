"""
Recovery query synthesis.

A tracked subscription with cursor 42 on key "offset" and fixed args
{"filter": "important"} becomes:

    subscription { onItems(offset: 42, filter: "important") { id, offset, data } }
"""

from __future__ import annotations

import json
from typing import Any

from .state import TrackedSubscription


def encode_literal(value: Any) -> str:
    """
    Encode an argument value as query literal text.

    Strings are JSON-quoted; numbers, booleans, null, lists and objects use
    compact JSON text.
    """
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def build_recovery_arguments(tracked: TrackedSubscription) -> list[str]:
    """Cursor argument first (when known), then fixed args in configured order."""
    args = []
    if tracked.last_value is not None:
        args.append(f"{tracked.key}: {encode_literal(tracked.last_value)}")

    for name, value in tracked.fixed_args.items():
        args.append(f"{name}: {encode_literal(value)}")

    return args


def build_recovery_query(tracked: TrackedSubscription) -> str:
    """Build the subscription query used to resume after reconnection."""
    alias_prefix = f"{tracked.alias}: " if tracked.alias else ""
    args = build_recovery_arguments(tracked)
    args_text = f"({', '.join(args)})" if args else ""

    return f"subscription {{ {alias_prefix}{tracked.root_name}{args_text} {{ {', '.join(tracked.fields)} }} }}"
