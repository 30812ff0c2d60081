"""Key-value persistence port used for session progress."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

ValueListener = Callable[[str], None]
Unsubscribe = Callable[[], None]


@runtime_checkable
class KeyValueStore(Protocol):
    """Synchronous, process-local string store that survives restarts."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def subscribe(self, key: str, listener: ValueListener) -> Unsubscribe:
        """Call ``listener`` with the new value every time ``key`` is set."""
        ...


__all__ = ["KeyValueStore", "Unsubscribe", "ValueListener"]
