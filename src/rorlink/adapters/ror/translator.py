"""Translate ROR payloads into registry candidates."""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from rorlink.domain.model import MatchType, RegistryCandidate, RegistryLocation, RegistryName

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .schema import RorAffiliationItem, RorLocation

log = getLogger(__name__)

ROR_ID_PREFIX = "https://ror.org/"


def ror_id_suffix(ror_id: str) -> str:
    return ror_id.removeprefix(ROR_ID_PREFIX).strip("/")


def translate_location(location: RorLocation) -> RegistryLocation:
    details = location.geonames_details
    if details is None:
        return RegistryLocation(geonames_id=location.geonames_id)
    return RegistryLocation(
        geonames_id=location.geonames_id,
        name=details.name,
        country_name=details.country_name,
        country_code=details.country_code,
        subdivision_name=details.country_subdivision_name,
        continent_name=details.continent_name,
    )


def translate_affiliation_item(item: RorAffiliationItem) -> RegistryCandidate | None:
    organization = item.organization
    if organization is None or not organization.id:
        log.warning("Skipping ROR affiliation hit without an organization id")
        return None
    country = organization.country
    return RegistryCandidate(
        id=organization.id,
        name=organization.name,
        names=tuple(
            RegistryName(value=name.value, types=tuple(name.types), lang=name.lang)
            for name in organization.names
        ),
        aliases=tuple(organization.aliases),
        acronyms=tuple(organization.acronyms),
        country_name=country.country_name if country else None,
        country_code=country.country_code if country else None,
        locations=tuple(translate_location(location) for location in organization.locations),
        score=item.score,
        match_type=MatchType.parse(item.matching_type),
        recommended=item.chosen,
        substring=item.substring,
    )


def translate_affiliation_items(items: Iterable[RorAffiliationItem]) -> list[RegistryCandidate]:
    candidates: list[RegistryCandidate] = []
    for item in items:
        candidate = translate_affiliation_item(item)
        if candidate is not None:
            candidates.append(candidate)
    return candidates


def with_locations(
    candidate: RegistryCandidate,
    locations: Iterable[RorLocation],
) -> RegistryCandidate:
    """Return a copy of ``candidate`` carrying the detail-endpoint locations."""

    translated = tuple(translate_location(location) for location in locations)
    if not translated:
        return candidate
    first = translated[0]
    return replace(
        candidate,
        locations=translated,
        country_name=candidate.country_name or first.country_name,
        country_code=candidate.country_code or first.country_code,
    )
