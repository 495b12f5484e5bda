"""
Pydantic models for subscription configuration and query introspection.

These describe the static configuration supplied at construction and the
normalized shapes produced when a subscription query or result is inspected.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SubscriptionDescriptor(BaseModel):
    """
    Resumable subscription configuration.

    Example:
    {
        "name": "onItems",
        "key": "offset",
        "args": {"filter": "important", "limit": 10}
    }

    `name` is the schema subscription field (never an alias), `key` is the
    result field carrying the resume cursor, and `args` are fixed arguments
    appended to every recovery query in the configured order.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    key: str = Field(min_length=1)
    args: Optional[dict[str, Any]] = None

    @field_validator("args")
    @classmethod
    def _check_args_encodable(cls, value: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
        # Recovery queries render fixed args as JSON literals
        if value is None:
            return None
        try:
            json.dumps(value, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise ValueError(f"fixed args must be JSON-encodable: {e}") from e
        return value

    @property
    def fixed_args(self) -> dict[str, Any]:
        return dict(self.args or {})


class QueryInfo(BaseModel):
    """
    Normalized shape of a subscription operation.

    Input: subscription { Feed: onItems(offset: 3) { id ...F } }
    Normalized: QueryInfo(name="onItems", alias="Feed", fields=["id", ...], params={"offset": 3})
    """
    name: str
    alias: Optional[str] = None
    fields: list[str] = Field(default_factory=list)
    params: dict[str, Any] = Field(default_factory=dict)
    variables: dict[str, Any] = Field(default_factory=dict)

    @property
    def identity(self) -> str:
        """Alias if present, else root field name."""
        return self.alias or self.name


class ResultKeyInfo(BaseModel):
    """Root name and data object of a subscription result payload."""
    root_name: Optional[str] = None
    data: Any = None
