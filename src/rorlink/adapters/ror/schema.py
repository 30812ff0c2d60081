"""ROR affiliation-search and organisation-detail response schemas."""

from __future__ import annotations

import logging
import math
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

log = logging.getLogger(__name__)

type RorId = str  # https://ror.org/0xxxxxx


class RorBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow")
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "ROR %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class RorName(RorBaseModel):
    value: str
    types: list[str] = Field(default_factory=list)
    lang: str | None = None

    @field_validator("types", mode="before")
    @classmethod
    def types_default(cls, value: object) -> object:
        return [] if value is None else value


class RorCountry(RorBaseModel):
    country_code: str | None = None
    country_name: str | None = None


class RorGeonamesDetails(RorBaseModel):
    name: str | None = None
    country_name: str | None = None
    country_code: str | None = None
    country_subdivision_name: str | None = None
    continent_name: str | None = None


class RorLocation(RorBaseModel):
    geonames_id: int | None = None
    geonames_details: RorGeonamesDetails | None = None


class RorOrganization(RorBaseModel):
    id: RorId | None = None
    name: str | None = None
    names: list[RorName] = Field(default_factory=list)
    country: RorCountry | None = None
    aliases: list[str] = Field(default_factory=list)
    acronyms: list[str] = Field(default_factory=list)
    links: list[str] = Field(default_factory=list)
    types: list[str] = Field(default_factory=list)
    locations: list[RorLocation] = Field(default_factory=list)

    @field_validator("names", "aliases", "acronyms", "links", "types", "locations", mode="before")
    @classmethod
    def lists_default(cls, value: object) -> object:
        return [] if value is None else value


class RorAffiliationItem(RorBaseModel):
    organization: RorOrganization | None = None
    score: float = 0.0
    matching_type: str | None = None
    chosen: bool = False
    substring: str | None = None

    @field_validator("score", mode="before")
    @classmethod
    def coerce_score(cls, value: object) -> float:
        if isinstance(value, bool):
            return 0.0
        try:
            score = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 0.0
        return score if math.isfinite(score) else 0.0

    @field_validator("chosen", mode="before")
    @classmethod
    def coerce_chosen(cls, value: object) -> bool:
        return bool(value)

    @field_validator("matching_type", "substring", mode="before")
    @classmethod
    def strings_only(cls, value: object) -> str | None:
        return value if isinstance(value, str) else None


class RorAffiliationResponse(RorBaseModel):
    number_of_results: int | None = None
    items: list[RorAffiliationItem] = Field(default_factory=list)

    @field_validator("items", mode="before")
    @classmethod
    def items_default(cls, value: object) -> object:
        return value if isinstance(value, list) else []


class RorOrganizationDetail(RorBaseModel):
    id: RorId | None = None
    locations: list[RorLocation] = Field(default_factory=list)

    @field_validator("locations", mode="before")
    @classmethod
    def locations_default(cls, value: object) -> object:
        return [] if value is None else value
