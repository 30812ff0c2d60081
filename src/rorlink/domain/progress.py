"""Points, levels and link history persisted through a key-value store."""

from __future__ import annotations

import json
import math
from datetime import UTC, datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING, Final

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from rorlink.domain.model import Level, LinkRecord, ProgressState

if TYPE_CHECKING:
    from collections.abc import Callable

    from rorlink.domain.ports.persistence import KeyValueStore

log = getLogger(__name__)

POINTS_KEY: Final[str] = "ror_match_points"
HISTORY_KEY: Final[str] = "ror_match_history"
HISTORY_LIMIT: Final[int] = 50
MAX_POINTS: Final[int] = 1000

LEVELS: Final[tuple[Level, ...]] = (
    Level("Unstructured Newbie", 0),
    Level("Metadata Apprentice", 250),
    Level("Pure Data influencer", 500),
    Level("Persistent Identifier Pro", 700),
    Level("Final Boss of Metadata", 900),
)


def award_points(score: float) -> int:
    if not math.isfinite(score):
        return 1
    if score >= 0.8:
        return 10
    if score >= 0.6:
        return 5
    return 1


def level_for(points: int) -> Level:
    current = LEVELS[0]
    for level in LEVELS:
        if points >= level.threshold:
            current = level
    return current


def _utcnow() -> datetime:
    return datetime.now(UTC)


_EPOCH: Final[datetime] = datetime(1970, 1, 1, tzinfo=UTC)


def _to_millis(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return (value - _EPOCH) // timedelta(milliseconds=1)


def _from_millis(value: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=value)


class StoredLink(BaseModel):
    """History entry as written to the store (epoch-millisecond timestamps)."""

    model_config = ConfigDict(populate_by_name=True)

    ts: int
    uuid: str
    org_name: str = Field(alias="orgName")
    ror_id: str = Field(alias="rorId")
    score: float = 0.0
    match_type: str | None = Field(default=None, alias="matchType")

    @classmethod
    def from_record(cls, record: LinkRecord) -> StoredLink:
        return cls(
            ts=_to_millis(record.timestamp),
            uuid=record.record_id,
            org_name=record.display_name,
            ror_id=record.registry_id,
            score=record.score,
            match_type=record.match_type,
        )

    def to_record(self) -> LinkRecord:
        return LinkRecord(
            timestamp=_from_millis(self.ts),
            record_id=self.uuid,
            display_name=self.org_name,
            registry_id=self.ror_id,
            score=self.score,
            match_type=self.match_type,
        )


_HISTORY_ADAPTER = TypeAdapter(list[StoredLink])


def load_progress(store: KeyValueStore) -> ProgressState:
    """Read progress from ``store``; unreadable values count as empty state."""

    return ProgressState(score=_load_points(store), history=_load_history(store))


def _load_points(store: KeyValueStore) -> int:
    raw = store.get(POINTS_KEY)
    if raw is None:
        return 0
    try:
        return int(raw)
    except ValueError:
        log.warning("Ignoring malformed stored points value: %r", raw)
        return 0


def _load_history(store: KeyValueStore) -> list[LinkRecord]:
    raw = store.get(HISTORY_KEY)
    if raw is None:
        return []
    try:
        entries = _HISTORY_ADAPTER.validate_json(raw)
    except ValidationError:
        log.warning("Ignoring malformed stored link history")
        return []
    return [entry.to_record() for entry in entries[:HISTORY_LIMIT]]


class ProgressTracker:
    """Cumulative score and newest-first link history, written through on every change."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        clock: Callable[[], datetime] = _utcnow,
        history_limit: int = HISTORY_LIMIT,
    ) -> None:
        self._store = store
        self._clock = clock
        self._history_limit = history_limit
        self._state = load_progress(store)

    @property
    def score(self) -> int:
        return self._state.score

    @property
    def history(self) -> tuple[LinkRecord, ...]:
        return tuple(self._state.history)

    @property
    def level(self) -> Level:
        return level_for(self._state.score)

    @property
    def next_level(self) -> Level | None:
        for level in LEVELS:
            if level.threshold > self._state.score:
                return level
        return None

    @property
    def progress_percent(self) -> int:
        return min(100, round(self._state.score / MAX_POINTS * 100))

    def record_link(
        self,
        *,
        record_id: str,
        display_name: str,
        registry_id: str,
        score: float,
        match_type: str | None = None,
    ) -> tuple[int, LinkRecord]:
        """Award points for a link and prepend it to the history.

        Returns the points awarded and the stored entry.
        """
        points = award_points(score)
        now = self._clock()
        # Stored timestamps only keep milliseconds.
        timestamp = now.replace(microsecond=now.microsecond // 1000 * 1000)
        entry = LinkRecord(
            timestamp=timestamp,
            record_id=record_id,
            display_name=display_name,
            registry_id=registry_id,
            score=score,
            match_type=match_type,
        )
        self._state.score += points
        self._state.history = [entry, *self._state.history][: self._history_limit]
        self._persist()
        return points, entry

    def clear_history(self) -> None:
        self._state.history = []
        self._persist()

    def _persist(self) -> None:
        self._store.set(POINTS_KEY, str(self._state.score))
        payload = [
            StoredLink.from_record(entry).model_dump(by_alias=True)
            for entry in self._state.history
        ]
        self._store.set(HISTORY_KEY, json.dumps(payload))


__all__ = [
    "HISTORY_KEY",
    "HISTORY_LIMIT",
    "LEVELS",
    "MAX_POINTS",
    "POINTS_KEY",
    "ProgressTracker",
    "StoredLink",
    "award_points",
    "level_for",
    "load_progress",
]
