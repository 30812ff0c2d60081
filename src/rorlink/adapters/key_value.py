"""In-process key-value store and the listener bookkeeping shared by all stores."""

from __future__ import annotations

from collections import defaultdict
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from rorlink.domain.ports.persistence import Unsubscribe, ValueListener

log = getLogger(__name__)


class ListenerRegistry:
    def __init__(self) -> None:
        self._listeners: defaultdict[str, list[ValueListener]] = defaultdict(list)

    def subscribe(self, key: str, listener: ValueListener) -> Unsubscribe:
        self._listeners[key].append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def notify(self, key: str, value: str) -> None:
        for listener in tuple(self._listeners.get(key, ())):
            listener(value)


class InMemoryKeyValueStore:
    """Dictionary-backed store; state lives only as long as the process."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})
        self._listeners = ListenerRegistry()

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value
        self._listeners.notify(key, value)

    def subscribe(self, key: str, listener: ValueListener) -> Unsubscribe:
        return self._listeners.subscribe(key, listener)

    def snapshot(self) -> dict[str, str]:
        return dict(self._values)
