"""
Subscription registry - per-client resumable subscription state.

Observes subscription starts and results flowing through a proxy, keeps a
cursor per subscription, and replays recovery subscriptions on reconnect.

Usage:
    from stateful_subscriptions import SubscriptionRegistry

    registry = SubscriptionRegistry(
        subscriptions=[{"name": "onItems", "key": "offset"}],
    )

    registry.record_connection_init("client-1", {"token": "..."})
    registry.register_subscription("client-1", "subscription { onItems { id data } }", transport_id="1")
    registry.observe_result("client-1", {"onItems": {"id": "a", "offset": 42, "data": "x"}})

    # After the upstream connection is re-established
    registry.restore_subscriptions("client-1", websocket)

Not thread-safe: callers driving one registry from several threads must
serialize access per client.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, MutableMapping
from typing import Any, Optional, Union

from pydantic import ValidationError

from ..websocket.protocol import (
    GQL_START,
    Transport,
    connection_init_message,
    start_message,
)
from .errors import QuerySyntaxError, SubscriptionConfigError
from .introspector import extract_result_key_info, parse_subscription_query
from .query_types import QueryInfo, SubscriptionDescriptor
from .recovery import build_recovery_query
from .state import ClientState, TrackedSubscription

# Variable name a client can set to resume from an explicit cursor
LAST_VALUE_VARIABLE = "lastValue"

DescriptorInput = Union[SubscriptionDescriptor, Mapping[str, Any]]


def _to_descriptor(raw: DescriptorInput) -> SubscriptionDescriptor:
    if isinstance(raw, SubscriptionDescriptor):
        return raw
    try:
        return SubscriptionDescriptor.model_validate(raw)
    except ValidationError as e:
        raise SubscriptionConfigError.from_validation_error(e) from e


class SubscriptionRegistry:
    """
    Registry of resumable subscriptions per client.

    Manages:
    - Subscription descriptors (root field name -> cursor key, fixed args)
    - Client state (connection_init payload, tracked subscriptions)
    - Cursor updates from results, including injected key stripping
    - Recovery replay on reconnect
    """

    def __init__(
        self,
        subscriptions: Iterable[DescriptorInput] = (),
        *,
        logger: Optional[logging.Logger] = None,
        default_message_type: str = GQL_START,
    ):
        """
        Initialize registry.

        Args:
            subscriptions: Descriptors for subscriptions that should be resumable.
                A repeated name replaces the earlier descriptor.
            logger: Logger to report diagnostics to (package logger by default)
            default_message_type: Message type recorded when a registration
                does not supply one

        Raises:
            SubscriptionConfigError: If a descriptor is invalid
        """
        self.logger = logger or logging.getLogger(__name__)
        self.default_message_type = default_message_type
        self._clients: dict[str, ClientState] = {}
        self._descriptors: dict[str, SubscriptionDescriptor] = {}

        for raw in subscriptions:
            descriptor = _to_descriptor(raw)
            self._descriptors[descriptor.name] = descriptor

    @classmethod
    def from_config(cls, config: Any, logger: Optional[logging.Logger] = None) -> "SubscriptionRegistry":
        """
        Create registry from a StatefulSubscriptionsConfig.

        The config's log_level is not applied here; see config.apply_log_level.
        """
        return cls(
            config.subscriptions,
            logger=logger,
            default_message_type=config.default_message_type,
        )

    # =========================================================================
    # Client state
    # =========================================================================

    def _get_or_create_client(self, client_id: str) -> ClientState:
        client = self._clients.get(client_id)
        if client is None:
            client = ClientState()
            self._clients[client_id] = client
        return client

    def record_connection_init(self, client_id: str, payload: Any) -> None:
        """Store the client's connection_init payload for replay on restore."""
        client = self._get_or_create_client(client_id)
        client.connection_init_payload = payload

    def remove_client(self, client_id: str) -> None:
        """Forget a client entirely, including its connection_init payload."""
        if self._clients.pop(client_id, None) is not None:
            self.logger.debug(f"Forgot client {client_id}")

    # =========================================================================
    # Tracking
    # =========================================================================

    def register_subscription(
        self,
        client_id: str,
        query: str,
        variables: Optional[Mapping[str, Any]] = None,
        transport_id: Optional[str] = None,
        message_type: Optional[str] = None,
    ) -> None:
        """
        Start tracking a subscription for a client.

        Non-subscription operations, subscriptions without a descriptor, and
        identities already tracked for the client are skipped silently.
        Malformed queries are logged and skipped.

        Args:
            client_id: Client identifier
            query: GraphQL document text
            variables: Variable bindings; a "lastValue" entry sets the initial cursor
            transport_id: Transport-assigned operation id, used for targeted removal
            message_type: Message type used to start the subscription
        """
        client = self._get_or_create_client(client_id)

        if variables is not None and not isinstance(variables, Mapping):
            self.logger.warning(
                f"Ignoring subscription from {client_id}: variables must be an object, got {type(variables).__name__}"
            )
            return

        if transport_id is not None and not isinstance(transport_id, str):
            self.logger.warning(
                f"Ignoring subscription from {client_id}: id must be a string, got {type(transport_id).__name__}"
            )
            return

        try:
            info = parse_subscription_query(query, variables)
        except QuerySyntaxError as e:
            self.logger.error(f"Error parsing GraphQL query: {e}", exc_info=True)
            return

        if info is None:
            return

        identity = info.identity
        if identity in client.subscriptions:
            self.logger.debug(f"Client {client_id} already tracks subscription {identity}")
            return

        # Descriptors are looked up by schema name, never by alias
        descriptor = self._descriptors.get(info.name)
        if descriptor is None:
            return

        tracked = self._track(info, descriptor, variables)
        if transport_id is not None:
            tracked.transport_id = transport_id
            client.subscription_id_index[transport_id] = identity
        tracked.message_type = message_type or self.default_message_type

        client.subscriptions[identity] = tracked

    def _track(
        self,
        info: QueryInfo,
        descriptor: SubscriptionDescriptor,
        variables: Optional[Mapping[str, Any]],
    ) -> TrackedSubscription:
        fields = list(info.fields)
        key_was_injected = descriptor.key not in fields
        if key_was_injected:
            fields.append(descriptor.key)
            self.logger.debug(f"Injecting missing key field {descriptor.key} into subscription {info.name}")

        if variables is not None and LAST_VALUE_VARIABLE in variables:
            last_value = variables[LAST_VALUE_VARIABLE]
        else:
            last_value = info.params.get(descriptor.key)

        return TrackedSubscription(
            root_name=info.name,
            identity=info.identity,
            key=descriptor.key,
            fields=fields,
            alias=info.alias,
            params=dict(info.params),
            fixed_args=descriptor.fixed_args,
            key_was_injected=key_was_injected,
            last_value=last_value,
        )

    def observe_result(self, client_id: str, result: Any) -> Any:
        """
        Update the cursor of the subscription a result belongs to.

        When the key field was injected by the registry, it is removed from the
        result data IN PLACE so downstream consumers only see requested fields.

        Args:
            client_id: Client identifier
            result: Result payload {identity: data}; may be mutated

        Returns:
            The same result object
        """
        self.logger.debug(f"Updating subscription state for client {client_id}")

        client = self._clients.get(client_id)
        if client is None:
            return result

        info = extract_result_key_info(result)
        if info.root_name is None:
            return result

        tracked = client.subscriptions.get(info.root_name)
        if tracked is None:
            return result

        descriptor = self._descriptors.get(tracked.root_name)
        if descriptor is None:
            return result

        data = result[info.root_name]
        if not isinstance(data, MutableMapping) or descriptor.key not in data:
            return result

        tracked.last_value = data[descriptor.key]

        if tracked.key_was_injected:
            del data[descriptor.key]

        return result

    # =========================================================================
    # Restore / removal
    # =========================================================================

    def restore_subscriptions(self, client_id: str, transport: Transport) -> None:
        """
        Replay connection_init and every tracked subscription on a new transport.

        All tracked subscriptions are restored in registration order, whether
        or not a cursor has been observed yet.
        """
        self.logger.debug(f"Restoring subscriptions for client {client_id}")

        client = self._clients.get(client_id)
        if client is None:
            return

        transport.send(connection_init_message(client.connection_init_payload))

        for tracked in client.subscriptions.values():
            query = build_recovery_query(tracked)
            self.logger.debug(f"Restoring subscription {tracked.identity}: {query}")
            transport.send(start_message(tracked.transport_id, tracked.message_type, query))

    def remove_subscription(self, client_id: str, transport_id: str) -> None:
        """Stop tracking the subscription started with a transport id."""
        if not transport_id or not isinstance(transport_id, str):
            return

        client = self._clients.get(client_id)
        if client is None:
            return

        identity = client.subscription_id_index.pop(transport_id, None)
        if identity is None:
            return

        client.subscriptions.pop(identity, None)

    def remove_all_subscriptions(self, client_id: str) -> None:
        """Stop tracking all subscriptions of a client, keeping its state."""
        client = self._clients.get(client_id)
        if client is None:
            return

        client.subscriptions.clear()
        client.subscription_id_index.clear()

    # =========================================================================
    # Read access
    # =========================================================================

    def get_client(self, client_id: str) -> Optional[ClientState]:
        """Get client state (treat as read-only)."""
        return self._clients.get(client_id)

    def get_subscription(self, client_id: str, identity: str) -> Optional[TrackedSubscription]:
        """Get a tracked subscription by identity (treat as read-only)."""
        client = self._clients.get(client_id)
        return client.subscriptions.get(identity) if client else None

    def get_client_subscriptions(self, client_id: str) -> dict[str, TrackedSubscription]:
        """Get tracked subscriptions for a client"""
        client = self._clients.get(client_id)
        return client.subscriptions.copy() if client else {}

    @property
    def descriptors(self) -> dict[str, SubscriptionDescriptor]:
        return dict(self._descriptors)

    @property
    def client_ids(self) -> list[str]:
        return list(self._clients)

    @property
    def client_count(self) -> int:
        """Get number of known clients"""
        return len(self._clients)

    @property
    def subscription_count(self) -> int:
        """Get total number of tracked subscriptions across all clients"""
        return sum(len(client.subscriptions) for client in self._clients.values())
