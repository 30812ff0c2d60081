"""Session progress: link history entries and award levels."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(frozen=True, slots=True)
class LinkRecord:
    timestamp: datetime
    record_id: str
    display_name: str
    registry_id: str
    score: float
    match_type: str | None = None


@dataclass(slots=True)
class ProgressState:
    score: int = 0
    history: list[LinkRecord] = field(default_factory=list["LinkRecord"])


@dataclass(frozen=True, slots=True)
class Level:
    label: str
    threshold: int
