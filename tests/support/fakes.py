"""In-process fakes for the catalog and registry ports."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from rorlink.config.pure import DEFAULT_ROR_TYPE_URI
from rorlink.domain.model import (
    CatalogRecord,
    ClassifiedId,
    MatchType,
    RegistryCandidate,
    WorkflowStatus,
)
from rorlink.domain.ports.catalog import UpdateResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rorlink.domain.model import Identifier


def make_record(
    record_id: str = "org-1",
    *,
    version: str = "v1",
    name: str = "Aarhus University",
    identifiers: tuple[Identifier, ...] = (),
    status: WorkflowStatus = WorkflowStatus.FOR_APPROVAL,
) -> CatalogRecord:
    return CatalogRecord(
        id=record_id,
        version=version,
        name={"en_GB": name},
        identifiers=identifiers,
        country="Denmark",
        workflow_status=status,
        workflow_step=status.value,
    )


def make_candidate(
    ror_id: str = "https://ror.org/01aj84f44",
    *,
    name: str = "Aarhus University",
    score: float = 0.95,
    recommended: bool = False,
    match_type: MatchType = MatchType.PHRASE,
) -> RegistryCandidate:
    return RegistryCandidate(
        id=ror_id,
        name=name,
        score=score,
        recommended=recommended,
        match_type=match_type,
    )


def existing_ror_id(ror_id: str = "https://ror.org/04m5j1k67") -> ClassifiedId:
    return ClassifiedId(id=ror_id, type_uri=DEFAULT_ROR_TYPE_URI, type_term={"en_GB": "ROR ID"})


@dataclass
class UpdateCall:
    record_id: str
    version: str
    identifiers: tuple[Identifier, ...]


@dataclass
class FakeCatalog:
    """Serves queued random draws and a mutable "server side" copy of each record."""

    draws: list[CatalogRecord | None | Exception] = field(default_factory=list)
    latest: dict[str, CatalogRecord] = field(default_factory=dict)
    update_error: Exception | None = None
    updates: list[UpdateCall] = field(default_factory=list)
    fetch_calls: list[str] = field(default_factory=list)
    gate: asyncio.Event | None = None

    async def count(self) -> int:
        return len(self.latest)

    async def fetch_random_eligible(self) -> CatalogRecord | None:
        if self.gate is not None:
            await self.gate.wait()
        if not self.draws:
            return None
        result = self.draws.pop(0)
        if isinstance(result, Exception):
            raise result
        if result is not None:
            self.latest.setdefault(result.id, result)
        return result

    async def fetch_by_id(self, record_id: str) -> CatalogRecord:
        self.fetch_calls.append(record_id)
        return self.latest[record_id]

    async def update(
        self,
        record_id: str,
        version: str,
        identifiers: Sequence[Identifier],
    ) -> UpdateResult:
        self.updates.append(UpdateCall(record_id, version, tuple(identifiers)))
        if self.update_error is not None:
            raise self.update_error
        current = self.latest[record_id]
        updated = replace(current, version=f"{version}+1", identifiers=tuple(identifiers))
        self.latest[record_id] = updated
        return UpdateResult(status_code=200, record=updated)


@dataclass
class FakeRegistry:
    results: dict[str, list[RegistryCandidate]] = field(default_factory=dict)
    error: Exception | None = None
    queries: list[str] = field(default_factory=list)

    async def search_by_name(self, name: str) -> list[RegistryCandidate]:
        self.queries.append(name)
        if self.error is not None:
            raise self.error
        return list(self.results.get(name, []))
