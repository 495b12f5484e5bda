"""Per-client subscription bookkeeping."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..websocket.protocol import GQL_START


@dataclass
class TrackedSubscription:
    """A resumable subscription tracked for one client."""
    root_name: str  # Schema field name, never the alias
    identity: str  # Alias or root_name
    key: str  # Cursor field from the descriptor
    fields: list[str] = field(default_factory=list)
    alias: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)
    fixed_args: Dict[str, Any] = field(default_factory=dict)
    key_was_injected: bool = False
    last_value: Any = None
    transport_id: Optional[str] = None
    message_type: str = GQL_START


@dataclass
class ClientState:
    """State owned by one client across reconnects."""
    connection_init_payload: Any = None
    subscriptions: Dict[str, TrackedSubscription] = field(default_factory=dict)  # identity -> subscription
    subscription_id_index: Dict[str, str] = field(default_factory=dict)  # transport id -> identity
