"""
Stateful subscriptions - resumable GraphQL subscriptions behind a proxy.

Tracks per-client subscription cursors so that after a reconnect each
subscription resumes from the last observed value instead of replaying
from the beginning.

Usage:
    from stateful_subscriptions import SubscriptionRegistry, SubscriptionMessageRouter

    registry = SubscriptionRegistry(
        subscriptions=[{"name": "onItems", "key": "offset", "args": {"limit": 10}}],
    )
    router = SubscriptionMessageRouter(registry)
"""

from __future__ import annotations

import logging

from .core import (
    ClientState,
    QueryInfo,
    QuerySyntaxError,
    ResultKeyInfo,
    StatefulSubscriptionsError,
    SubscriptionConfigError,
    SubscriptionDescriptor,
    SubscriptionRegistry,
    TrackedSubscription,
    build_recovery_query,
    encode_literal,
    extract_result_key_info,
    parse_subscription_query,
)
from .config import StatefulSubscriptionsConfig, load_config
from .websocket import SubscriptionMessageRouter, Transport

# Silent unless the host application configures logging
logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Errors
    "StatefulSubscriptionsError",
    "QuerySyntaxError",
    "SubscriptionConfigError",
    # Types
    "SubscriptionDescriptor",
    "QueryInfo",
    "ResultKeyInfo",
    "ClientState",
    "TrackedSubscription",
    # Introspection / recovery
    "parse_subscription_query",
    "extract_result_key_info",
    "build_recovery_query",
    "encode_literal",
    # Registry
    "SubscriptionRegistry",
    # Config
    "StatefulSubscriptionsConfig",
    "load_config",
    # WebSocket
    "SubscriptionMessageRouter",
    "Transport",
]
