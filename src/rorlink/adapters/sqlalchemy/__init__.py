"""SQLAlchemy persistence adapter."""

from __future__ import annotations

from .store import SqlAlchemyKeyValueStore, key_value_table, metadata

__all__ = ["SqlAlchemyKeyValueStore", "key_value_table", "metadata"]
