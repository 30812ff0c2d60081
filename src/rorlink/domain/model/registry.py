"""ROR organisations as match candidates."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class MatchType(StrEnum):
    EXACT = "EXACT"
    PHRASE = "PHRASE"
    COMMON_TERMS = "COMMON TERMS"
    FUZZY = "FUZZY"
    HEURISTICS = "HEURISTICS"
    ACRONYM = "ACRONYM"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str | None) -> MatchType:
        if not value:
            return cls.UNKNOWN
        normalized = value.strip().upper().replace("_", " ")
        try:
            return cls(normalized)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True, slots=True)
class RegistryName:
    value: str
    types: tuple[str, ...] = ()
    lang: str | None = None


@dataclass(frozen=True, slots=True)
class RegistryLocation:
    geonames_id: int | None = None
    name: str | None = None
    country_name: str | None = None
    country_code: str | None = None
    subdivision_name: str | None = None
    continent_name: str | None = None


@dataclass(frozen=True, slots=True)
class RegistryCandidate:
    id: str
    name: str | None = None
    names: tuple[RegistryName, ...] = ()
    aliases: tuple[str, ...] = ()
    acronyms: tuple[str, ...] = ()
    country_name: str | None = None
    country_code: str | None = None
    locations: tuple[RegistryLocation, ...] = ()
    score: float = 0.0
    match_type: MatchType = MatchType.UNKNOWN
    recommended: bool = False
    substring: str | None = None

    @property
    def primary_location(self) -> RegistryLocation | None:
        return self.locations[0] if self.locations else None
