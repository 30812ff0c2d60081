"""SQLite-backed key-value store for session progress."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, select
from sqlalchemy.orm import Session, sessionmaker

from rorlink.adapters.key_value import ListenerRegistry
from rorlink.config.storage import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from rorlink.domain.ports.persistence import Unsubscribe, ValueListener

log = getLogger(__name__)

metadata = MetaData()

key_value_table = Table(
    "key_value_entry",
    metadata,
    Column("key", String(255), primary_key=True),
    Column("value", Text, nullable=False),
)


class SqlAlchemyKeyValueStore:
    """Write-through store: every ``set`` commits its own transaction."""

    def __init__(
        self,
        *,
        engine: Engine | None = None,
        database_uri: str | None = None,
    ) -> None:
        self._engine = engine or create_engine(
            database_uri or get_database_config().uri, future=True
        )
        metadata.create_all(self._engine, checkfirst=True)
        self._session_factory: sessionmaker[Session] = sessionmaker(
            bind=self._engine, expire_on_commit=False
        )
        self._listeners = ListenerRegistry()

    @property
    def engine(self) -> Engine:
        return self._engine

    def get(self, key: str) -> str | None:
        with self._session_factory() as session:
            return session.execute(
                select(key_value_table.c.value).where(key_value_table.c.key == key)
            ).scalar_one_or_none()

    def set(self, key: str, value: str) -> None:
        with self._session_factory.begin() as session:
            exists = session.execute(
                select(key_value_table.c.key).where(key_value_table.c.key == key)
            ).scalar_one_or_none()
            if exists is None:
                session.execute(key_value_table.insert().values(key=key, value=value))
            else:
                session.execute(
                    key_value_table.update()
                    .where(key_value_table.c.key == key)
                    .values(value=value)
                )
        log.debug("Stored %s (%s bytes)", key, len(value))
        self._listeners.notify(key, value)

    def subscribe(self, key: str, listener: ValueListener) -> Unsubscribe:
        return self._listeners.subscribe(key, listener)

    def dispose(self) -> None:
        self._engine.dispose()
