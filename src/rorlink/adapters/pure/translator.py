"""Translate between Pure payloads and domain records."""

from __future__ import annotations

from collections.abc import Mapping
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from rorlink.domain.model import CatalogRecord, ClassifiedId, OpaqueIdentifier, WorkflowStatus

from .schema import PureClassifiedId

if TYPE_CHECKING:
    from collections.abc import Iterable

    from rorlink.domain.model import Identifier

    from .schema import PureAddress, PureExternalOrganization

log = getLogger(__name__)

_CLASSIFIED_KEYS = frozenset({"typeDiscriminator", "id", "type"})


def parse_identifier(payload: Mapping[str, object]) -> Identifier:
    """Classified ids become ``ClassifiedId``; every other shape is kept opaque."""

    if payload.get("typeDiscriminator") != "ClassifiedId":
        return OpaqueIdentifier(payload=dict(payload))
    try:
        parsed = PureClassifiedId.model_validate(payload)
    except ValidationError:
        log.debug("Keeping malformed ClassifiedId as opaque identifier: %s", payload)
        return OpaqueIdentifier(payload=dict(payload))
    term = {key: value for key, value in (parsed.type.term or {}).items() if value is not None}
    extra = {key: value for key, value in payload.items() if key not in _CLASSIFIED_KEYS}
    raw_type = payload.get("type")
    type_payload: dict[str, object] = {}
    if isinstance(raw_type, Mapping):
        type_payload = dict(raw_type)  # pyright: ignore[reportUnknownArgumentType]
    return ClassifiedId(
        id=parsed.id,
        type_uri=parsed.type.uri,
        type_term=term,
        extra=extra,
        type_payload=type_payload,
    )


def serialize_identifier(identifier: Identifier) -> dict[str, object]:
    if isinstance(identifier, OpaqueIdentifier):
        return dict(identifier.payload)
    identifier_type: dict[str, object]
    if identifier.type_payload:
        identifier_type = dict(identifier.type_payload)
    else:
        identifier_type = {"uri": identifier.type_uri}
        if identifier.type_term:
            identifier_type["term"] = dict(identifier.type_term)
    return {
        **identifier.extra,
        "typeDiscriminator": "ClassifiedId",
        "id": identifier.id,
        "type": identifier_type,
    }


def serialize_identifiers(identifiers: Iterable[Identifier]) -> list[dict[str, object]]:
    return [serialize_identifier(identifier) for identifier in identifiers]


def _country_name(address: PureAddress | None, locales: Iterable[str]) -> str | None:
    if address is None or address.country is None or not address.country.term:
        return None
    term = address.country.term
    for locale in locales:
        value = term.get(locale)
        if value:
            return value
    return next((value for value in term.values() if value), None)


def translate_external_organization(
    payload: PureExternalOrganization,
    *,
    locales: Iterable[str] = ("en_GB", "da_DK"),
) -> CatalogRecord:
    step = payload.workflow.step if payload.workflow else None
    return CatalogRecord(
        id=payload.uuid,
        version=payload.version,
        name={locale: value for locale, value in (payload.name or {}).items() if value},
        identifiers=tuple(parse_identifier(item) for item in payload.identifiers),
        country=_country_name(payload.address, tuple(locales)),
        city=payload.address.city if payload.address else None,
        workflow_status=WorkflowStatus.from_step(step),
        workflow_step=step,
    )
