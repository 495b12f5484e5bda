"""
Core module - query introspection, recovery synthesis, and the registry.
"""

from __future__ import annotations

from .errors import (
    QuerySyntaxError,
    StatefulSubscriptionsError,
    SubscriptionConfigError,
)
from .query_types import (
    QueryInfo,
    ResultKeyInfo,
    SubscriptionDescriptor,
)
from .introspector import (
    extract_fields,
    extract_result_key_info,
    parse_document,
    parse_subscription_query,
    resolve_arguments,
    resolve_value,
)
from .state import ClientState, TrackedSubscription
from .recovery import build_recovery_query, encode_literal
from .registry import SubscriptionRegistry

__all__ = [
    # Errors
    "StatefulSubscriptionsError",
    "QuerySyntaxError",
    "SubscriptionConfigError",
    # Types
    "SubscriptionDescriptor",
    "QueryInfo",
    "ResultKeyInfo",
    # Introspector
    "parse_document",
    "parse_subscription_query",
    "extract_result_key_info",
    "extract_fields",
    "resolve_arguments",
    "resolve_value",
    # State
    "ClientState",
    "TrackedSubscription",
    # Recovery
    "build_recovery_query",
    "encode_literal",
    # Registry
    "SubscriptionRegistry",
]
