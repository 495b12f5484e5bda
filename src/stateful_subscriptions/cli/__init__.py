"""
Stateful subscriptions CLI - Developer tools for configs and recovery queries.
"""

from __future__ import annotations

from .main import main, app

__all__ = ["main", "app"]
