"""Pure external organisations and their identifiers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from rorlink.domain.errors import IdentifierError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


class WorkflowStatus(StrEnum):
    FOR_APPROVAL = "forApproval"
    APPROVED = "approved"
    OTHER = "other"

    @classmethod
    def from_step(cls, step: str | None) -> WorkflowStatus:
        if step == cls.FOR_APPROVAL.value:
            return cls.FOR_APPROVAL
        if step == cls.APPROVED.value:
            return cls.APPROVED
        return cls.OTHER


ELIGIBLE_STATUSES = frozenset({WorkflowStatus.FOR_APPROVAL, WorkflowStatus.APPROVED})


@dataclass(frozen=True, slots=True)
class ClassifiedId:
    """Identifier classified by a Pure vocabulary term (``typeDiscriminator: ClassifiedId``).

    ``type_payload`` is the ``type`` object exactly as Pure sent it and ``extra`` holds
    the other top-level keys; both are written back unchanged.
    """

    id: str
    type_uri: str
    type_term: Mapping[str, str] = field(default_factory=dict)
    extra: Mapping[str, object] = field(default_factory=dict)
    type_payload: Mapping[str, object] = field(default_factory=dict)

    def is_registry_id(self, suffix: str) -> bool:
        return self.type_uri.rstrip("/").endswith(suffix)


@dataclass(frozen=True, slots=True)
class OpaqueIdentifier:
    """Any identifier shape we do not model; sent back to Pure untouched."""

    payload: Mapping[str, object]

    def is_registry_id(self, suffix: str) -> bool:
        # a ClassifiedId with an odd id or term still counts when its type matches
        if self.payload.get("typeDiscriminator") != "ClassifiedId":
            return False
        identifier_type = self.payload.get("type")
        if not isinstance(identifier_type, Mapping):
            return False
        uri = identifier_type.get("uri")  # pyright: ignore[reportUnknownMemberType]
        return isinstance(uri, str) and uri.rstrip("/").endswith(suffix)


type Identifier = ClassifiedId | OpaqueIdentifier


def has_registry_identifier(identifiers: Iterable[Identifier], suffix: str) -> bool:
    return any(identifier.is_registry_id(suffix) for identifier in identifiers)


def append_registry_identifier(
    identifiers: Sequence[Identifier],
    new: ClassifiedId,
    *,
    suffix: str,
) -> tuple[Identifier, ...]:
    """Return ``identifiers`` with ``new`` appended, refusing to add a second ROR id."""

    if not new.is_registry_id(suffix):
        raise IdentifierError(f"Identifier type {new.type_uri!r} is not a registry identifier")
    if has_registry_identifier(identifiers, suffix):
        raise IdentifierError("Record already carries a registry identifier")
    return (*identifiers, new)


@dataclass(frozen=True, slots=True)
class CatalogRecord:
    id: str
    version: str
    name: Mapping[str, str]
    identifiers: tuple[Identifier, ...] = ()
    country: str | None = None
    city: str | None = None
    workflow_status: WorkflowStatus = WorkflowStatus.OTHER
    workflow_step: str | None = None

    def display_name(self, locales: Sequence[str] = ("en_GB", "da_DK")) -> str:
        for locale in locales:
            value = self.name.get(locale)
            if value:
                return value
        for value in self.name.values():
            return value
        return ""

    def has_registry_identifier(self, suffix: str) -> bool:
        return has_registry_identifier(self.identifiers, suffix)

    def is_eligible(self, suffix: str) -> bool:
        return self.workflow_status in ELIGIBLE_STATUSES and not self.has_registry_identifier(
            suffix
        )
