"""
WebSocket module - protocol messages and proxy message routing.

Provides:
- Protocol constants and message builders for graphql-ws / graphql-transport-ws
- SubscriptionMessageRouter: Feeds proxied messages into a SubscriptionRegistry
"""

from __future__ import annotations

from .protocol import (
    GQL_CONNECTION_INIT,
    GQL_DATA,
    GQL_NEXT,
    GQL_START,
    GQL_SUBSCRIBE,
    GRAPHQL_WS,
    TRANSPORT_WS_PROTOCOL,
    Transport,
    build_message,
    encode_message,
    start_message_type,
)
from .router import SubscriptionMessageRouter

__all__ = [
    # Protocol
    "GRAPHQL_WS",
    "TRANSPORT_WS_PROTOCOL",
    "GQL_CONNECTION_INIT",
    "GQL_START",
    "GQL_SUBSCRIBE",
    "GQL_DATA",
    "GQL_NEXT",
    "Transport",
    "build_message",
    "encode_message",
    "start_message_type",
    # Router
    "SubscriptionMessageRouter",
]
