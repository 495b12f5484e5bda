"""
GraphQL over WebSocket protocol messages.

Covers the two sub-protocols a proxy sees in practice:
- graphql-ws (Apollo subscriptions-transport-ws)
- graphql-transport-ws
"""

from __future__ import annotations

import json
from typing import Any, Optional, Protocol, runtime_checkable


## graphql-ws (Apollo)
# https://github.com/apollographql/subscriptions-transport-ws/blob/master/PROTOCOL.md
GRAPHQL_WS = "graphql-ws"

GQL_START = "start"  # Client -> Server
GQL_DATA = "data"  # Server -> Client
GQL_STOP = "stop"  # Client -> Server
GQL_CONNECTION_ERROR = "connection_error"  # Server -> Client
GQL_CONNECTION_TERMINATE = "connection_terminate"  # Client -> Server
GQL_CONNECTION_KEEP_ALIVE = "ka"  # Server -> Client


## graphql-transport-ws
# https://github.com/enisdenjo/graphql-ws/blob/master/PROTOCOL.md
TRANSPORT_WS_PROTOCOL = "graphql-transport-ws"

GQL_SUBSCRIBE = "subscribe"  # Client -> Server
GQL_NEXT = "next"  # Server -> Client
GQL_PING = "ping"  # Bidirectional
GQL_PONG = "pong"  # Bidirectional


## Common messages for the two protocols
GQL_CONNECTION_INIT = "connection_init"  # Client -> Server
GQL_CONNECTION_ACK = "connection_ack"  # Server -> Client
GQL_ERROR = "error"  # Server -> Client
GQL_COMPLETE = "complete"  # Server -> Client (graphql-ws)
                           # Bidirectional (graphql-transport-ws)


# Message type used to start an operation, per sub-protocol
START_MESSAGE_TYPES = {
    GRAPHQL_WS: GQL_START,
    TRANSPORT_WS_PROTOCOL: GQL_SUBSCRIBE,
}

# Default to Apollo graphql-ws
WS_PROTOCOL = GRAPHQL_WS


@runtime_checkable
class Transport(Protocol):
    """Anything with a synchronous send(text), e.g. a WebSocket wrapper."""

    def send(self, text: str) -> None:
        ...


def start_message_type(protocol: str = WS_PROTOCOL) -> str:
    """Get the start message type for a sub-protocol."""
    try:
        return START_MESSAGE_TYPES[protocol]
    except KeyError:
        raise ValueError(
            f"Unknown WebSocket sub-protocol '{protocol}'. "
            f"Supported: {list(START_MESSAGE_TYPES.keys())}"
        )


def build_message(op_type: str, op_id: Optional[str] = None, payload: Any = None, *, with_id: bool = True) -> dict:
    """
    Build a protocol message.

    Operation messages always carry "id" (None when unknown); connection
    messages pass with_id=False.
    """
    message: dict[str, Any] = {}
    if with_id:
        message["id"] = op_id
    message["type"] = op_type
    message["payload"] = payload
    return message


def encode_message(message: dict) -> str:
    """Serialize a message to JSON text."""
    return json.dumps(message)


def connection_init_message(payload: Any = None) -> str:
    return encode_message(build_message(GQL_CONNECTION_INIT, payload=payload, with_id=False))


def start_message(op_id: Optional[str], op_type: str, query: str) -> str:
    return encode_message(build_message(op_type, op_id, {"query": query}))
