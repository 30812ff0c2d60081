"""Ports implemented by the adapters."""

from __future__ import annotations

from .catalog import CatalogPort, UpdateResult
from .persistence import KeyValueStore, Unsubscribe, ValueListener
from .registry import RegistryPort

__all__ = [
    "CatalogPort",
    "KeyValueStore",
    "RegistryPort",
    "Unsubscribe",
    "UpdateResult",
    "ValueListener",
]
