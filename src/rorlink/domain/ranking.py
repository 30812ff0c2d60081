"""Ordering and presentation rules for ROR match candidates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from rorlink.config.ror import PRESELECT_THRESHOLD

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from rorlink.domain.model import RegistryCandidate

DISPLAY_NAME_TYPES = ("ror_display", "label")
ALIAS_NAME_TYPE = "alias"


@dataclass(frozen=True, slots=True)
class CandidateRanker:
    preselect_threshold: float = PRESELECT_THRESHOLD

    def rank(self, candidates: Iterable[RegistryCandidate]) -> list[RegistryCandidate]:
        """Recommended candidates first, then by descending score.

        ``sorted`` is stable, so ties keep the order the registry returned them in.
        """
        return sorted(candidates, key=lambda c: (not c.recommended, -c.score))

    def preselect(self, ranked: Sequence[RegistryCandidate]) -> int | None:
        if ranked and ranked[0].score >= self.preselect_threshold:
            return 0
        return None

    def display_name(self, candidate: RegistryCandidate) -> str:
        return display_name(candidate)

    def alias_list(self, candidate: RegistryCandidate) -> list[str]:
        return alias_list(candidate)


def display_name(candidate: RegistryCandidate) -> str:
    """Curated name, else ``ror_display``, else ``label``, else first name, else the id."""

    if candidate.name and candidate.name.strip():
        return candidate.name
    for name_type in DISPLAY_NAME_TYPES:
        for name in candidate.names:
            if name_type in name.types and name.value:
                return name.value
    for name in candidate.names:
        if name.value:
            return name.value
    return candidate.id


def alias_list(candidate: RegistryCandidate) -> list[str]:
    display = display_name(candidate).casefold()
    from_names = [name.value for name in candidate.names if ALIAS_NAME_TYPE in name.types]

    seen: set[str] = {display}
    aliases: list[str] = []
    for alias in (*candidate.aliases, *from_names):
        if not alias or not alias.strip():
            continue
        key = alias.casefold()
        if key in seen:
            continue
        seen.add(key)
        aliases.append(alias)
    return aliases


__all__ = ["CandidateRanker", "alias_list", "display_name"]
