"""
Configuration loading and validation for stateful subscriptions.

Example stateful-subscriptions.yaml:

    protocol: graphql-ws
    subscriptions:
      - name: onItems
        key: offset
        args:
          filter: important
          limit: 10
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .core.errors import SubscriptionConfigError
from .core.query_types import SubscriptionDescriptor
from .websocket.protocol import START_MESSAGE_TYPES, WS_PROTOCOL, start_message_type

DEFAULT_CONFIG_PATH = "stateful-subscriptions.yaml"
CONFIG_PATH_ENV = "STATEFUL_SUBSCRIPTIONS_CONFIG"
PACKAGE_LOGGER = "stateful_subscriptions"


class StatefulSubscriptionsConfig(BaseModel):
    """Main stateful subscriptions configuration."""
    subscriptions: list[SubscriptionDescriptor] = Field(default_factory=list)
    protocol: str = WS_PROTOCOL
    log_level: Optional[str] = None

    @field_validator("protocol")
    @classmethod
    def _check_protocol(cls, value: str) -> str:
        if value not in START_MESSAGE_TYPES:
            raise ValueError(f"unknown protocol '{value}', expected one of {list(START_MESSAGE_TYPES)}")
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level '{value}'")
        return level

    @property
    def default_message_type(self) -> str:
        """Message type recorded for registrations that don't supply one."""
        return start_message_type(self.protocol)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StatefulSubscriptionsConfig":
        """
        Create config from dictionary.

        Raises:
            SubscriptionConfigError: If validation fails
        """
        try:
            return cls.model_validate(data or {})
        except ValidationError as e:
            raise SubscriptionConfigError.from_validation_error(e) from e

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for YAML serialization."""
        data: dict[str, Any] = {
            "protocol": self.protocol,
            "subscriptions": [
                descriptor.model_dump(exclude_none=True)
                for descriptor in self.subscriptions
            ],
        }
        if self.log_level:
            data["log_level"] = self.log_level
        return data

    def save(self, path: Path | str = DEFAULT_CONFIG_PATH) -> None:
        """Save configuration to YAML file."""
        path = Path(path)
        content = yaml.safe_dump(self.to_dict(), default_flow_style=False, sort_keys=False)
        path.write_text(content)


def default_config_path() -> Path:
    """Config path from the environment, or the default file name."""
    return Path(os.getenv(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH))


def load_config(path: Path | str | None = None) -> StatefulSubscriptionsConfig | None:
    """
    Load configuration from YAML file.

    Returns:
        Config, or None if the file does not exist

    Raises:
        SubscriptionConfigError: If the file is not valid YAML or fails validation
    """
    path = Path(path) if path is not None else default_config_path()
    if not path.exists():
        return None

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise SubscriptionConfigError([f"{path}: {e}"]) from e

    if data is not None and not isinstance(data, dict):
        raise SubscriptionConfigError([f"{path}: expected a mapping at top level"])

    return StatefulSubscriptionsConfig.from_dict(data or {})


def apply_log_level(config: StatefulSubscriptionsConfig) -> None:
    """
    Set the package logger level from config.

    Meant for entry points that own the process (the CLI). Library code that
    builds a registry from config leaves logging to the host application.
    """
    if config.log_level:
        logging.getLogger(PACKAGE_LOGGER).setLevel(config.log_level)
