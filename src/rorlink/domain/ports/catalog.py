"""Port for reading and writing Pure external organisations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from rorlink.domain.model import CatalogRecord, Identifier


@dataclass(frozen=True, slots=True)
class UpdateResult:
    """Outcome of a successful write.

    ``record`` is absent when the response body is not a full organisation.
    """

    status_code: int
    record: CatalogRecord | None = None
    payload: Mapping[str, object] = field(default_factory=dict)


class CatalogPort(Protocol):
    async def count(self) -> int: ...

    async def fetch_random_eligible(self) -> CatalogRecord | None: ...

    async def fetch_by_id(self, record_id: str) -> CatalogRecord: ...

    async def update(
        self,
        record_id: str,
        version: str,
        identifiers: Sequence[Identifier],
    ) -> UpdateResult: ...


__all__ = ["CatalogPort", "UpdateResult"]
