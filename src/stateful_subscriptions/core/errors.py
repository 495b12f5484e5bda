"""
Custom exceptions for stateful subscriptions.
"""

from __future__ import annotations

from typing import Any, Optional


class StatefulSubscriptionsError(Exception):
    """Base exception for all stateful subscription errors."""
    pass


class QuerySyntaxError(StatefulSubscriptionsError):
    """Raised when query text is not parseable GraphQL."""

    def __init__(self, message: str, locations: Optional[list[tuple[int, int]]] = None):
        self.locations = locations or []
        where = ", ".join(f"{line}:{column}" for line, column in self.locations)
        super().__init__(f"Error parsing GraphQL query{f' at {where}' if where else ''}: {message}")


class SubscriptionConfigError(StatefulSubscriptionsError):
    """Raised when subscription configuration is invalid."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Invalid subscription configuration: {errors}")

    @classmethod
    def from_validation_error(cls, error: Any) -> "SubscriptionConfigError":
        """Build from a pydantic ValidationError."""
        return cls([
            f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}"
            for err in error.errors()
        ])
