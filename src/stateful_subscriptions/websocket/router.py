"""
Message router for proxy hooks.

Feeds raw GraphQL-over-WebSocket text messages into a SubscriptionRegistry.
A proxy calls it from its own message hooks:

    router = SubscriptionMessageRouter(registry)

    # client -> upstream
    router.handle_client_message(client_id, text)

    # upstream -> client, forward the returned text
    text = router.handle_server_message(client_id, text)

    # upstream reconnected
    router.handle_reconnect(client_id, upstream_ws)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional

from .protocol import (
    GQL_COMPLETE,
    GQL_CONNECTION_INIT,
    GQL_CONNECTION_TERMINATE,
    GQL_DATA,
    GQL_NEXT,
    GQL_START,
    GQL_STOP,
    GQL_SUBSCRIBE,
    Transport,
    encode_message,
)

if TYPE_CHECKING:
    from ..core.registry import SubscriptionRegistry

logger = logging.getLogger(__name__)


START_TYPES = {GQL_START, GQL_SUBSCRIBE}
STOP_TYPES = {GQL_STOP, GQL_COMPLETE}
RESULT_TYPES = {GQL_DATA, GQL_NEXT}


def _valid_op_id(op_id: Any) -> bool:
    # bool is an int subclass but never a usable id
    return op_id is None or isinstance(op_id, str) or (isinstance(op_id, int) and not isinstance(op_id, bool))


def _op_id_key(op_id: Any) -> Optional[str]:
    """Operation ids are tracked as strings; numeric ids are normalized."""
    return None if op_id is None else str(op_id)


class SubscriptionMessageRouter:
    """
    Routes protocol messages to registry operations.

    Supports:
    - connection_init: Remember payload for replay
    - start / subscribe: Track subscription
    - stop / complete: Stop tracking one subscription
    - connection_terminate: Stop tracking all subscriptions
    - data / next: Update cursor (and strip injected key fields)
    """

    def __init__(self, registry: "SubscriptionRegistry"):
        self.registry = registry

    def _decode(self, client_id: str, raw: Any) -> Optional[dict]:
        if isinstance(raw, Mapping):
            return dict(raw)
        try:
            message = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"Invalid JSON in message from {client_id}: {str(raw)[:100]}")
            return None
        if not isinstance(message, dict):
            logger.warning(f"Unexpected message from {client_id}: {str(raw)[:100]}")
            return None
        return message

    def handle_client_message(self, client_id: str, raw: Any) -> Optional[dict]:
        """
        Handle message from client heading upstream.

        Args:
            client_id: Client identifier
            raw: JSON text (or already decoded dict)

        Returns:
            Decoded message, or None if it could not be decoded
        """
        message = self._decode(client_id, raw)
        if message is None:
            return None

        message_type = message.get("type")
        payload = message.get("payload") or {}

        if message_type == GQL_CONNECTION_INIT:
            self.registry.record_connection_init(client_id, message.get("payload"))

        elif message_type in START_TYPES:
            if not isinstance(payload, Mapping):
                logger.warning(f"Ignoring {message_type} without payload from {client_id}")
                return message

            op_id = message.get("id")
            if not _valid_op_id(op_id):
                logger.warning(f"Ignoring {message_type} with invalid id from {client_id}: {op_id!r}")
                return message

            variables = payload.get("variables")
            if variables is not None and not isinstance(variables, Mapping):
                logger.warning(f"Ignoring {message_type} with non-object variables from {client_id}")
                return message

            self.registry.register_subscription(
                client_id,
                payload.get("query"),
                variables,
                _op_id_key(op_id),
                message_type,
            )

        elif message_type in STOP_TYPES:
            op_id = message.get("id")
            if not _valid_op_id(op_id):
                logger.warning(f"Ignoring {message_type} with invalid id from {client_id}: {op_id!r}")
                return message
            self.registry.remove_subscription(client_id, _op_id_key(op_id))

        elif message_type == GQL_CONNECTION_TERMINATE:
            self.registry.remove_all_subscriptions(client_id)

        return message

    def handle_server_message(self, client_id: str, raw: Any) -> Any:
        """
        Handle message from upstream heading to client.

        Returns:
            Text to forward. Result messages are re-encoded so that injected
            key fields never reach the client; anything else is returned as is.
        """
        message = self._decode(client_id, raw)
        if message is None or message.get("type") not in RESULT_TYPES:
            return raw

        payload = message.get("payload")
        data = payload.get("data") if isinstance(payload, Mapping) else None
        if not isinstance(data, dict):
            return raw

        self.registry.observe_result(client_id, data)
        return encode_message(message) if isinstance(raw, str) else message

    def handle_reconnect(self, client_id: str, transport: Transport) -> None:
        """Replay tracked subscriptions on a new upstream connection."""
        self.registry.restore_subscriptions(client_id, transport)

    def handle_disconnect(self, client_id: str, forget: bool = False) -> None:
        """
        Handle client going away.

        By default state is kept so a later reconnect can resume;
        forget=True drops the client entirely.
        """
        if forget:
            self.registry.remove_client(client_id)
