"""Select, confirm and write ROR links for one external organisation at a time.

The workflow is a small finite-state machine::

    IDLE -> LOADING -> LOADED <-> SELECTED <-> CONFIRMING -> LINKING -> LINKED
                         ^                                      |
                         +------ (failed write) CONFIRMING <----+

Only one operation may run at a time; a second call while one is in flight raises
``WorkflowBusyError`` and a call from the wrong state raises
``IllegalTransitionError``.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, replace
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Final

from rorlink.config.pure import RegistryIdentifierType
from rorlink.domain.errors import (
    IllegalTransitionError,
    NotFoundEligible,
    RorLinkError,
    WorkflowBusyError,
)
from rorlink.domain.model import ClassifiedId, append_registry_identifier
from rorlink.domain.ranking import CandidateRanker

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from rorlink.domain.model import CatalogRecord, RegistryCandidate
    from rorlink.domain.ports.catalog import CatalogPort
    from rorlink.domain.ports.registry import RegistryPort
    from rorlink.domain.progress import ProgressTracker

log = getLogger(__name__)

FALLBACK_RECORD_NAME: Final[str] = "External organization"
NO_ELIGIBLE_MESSAGE: Final[str] = "No eligible external organizations found right now."


class WorkflowState(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    SELECTED = "selected"
    CONFIRMING = "confirming"
    LINKING = "linking"
    LINKED = "linked"


class LinkStatus(StrEnum):
    LINKED = "linked"
    ALREADY_LINKED = "already_linked"


_TRANSITIONS: Final[dict[WorkflowState, frozenset[WorkflowState]]] = {
    WorkflowState.IDLE: frozenset({WorkflowState.LOADING}),
    WorkflowState.LOADING: frozenset(
        {WorkflowState.IDLE, WorkflowState.LOADED, WorkflowState.SELECTED}
    ),
    WorkflowState.LOADED: frozenset({WorkflowState.LOADING, WorkflowState.SELECTED}),
    WorkflowState.SELECTED: frozenset(
        {
            WorkflowState.LOADING,
            WorkflowState.LOADED,
            WorkflowState.SELECTED,
            WorkflowState.CONFIRMING,
        }
    ),
    WorkflowState.CONFIRMING: frozenset(
        {WorkflowState.SELECTED, WorkflowState.LINKING, WorkflowState.LOADING}
    ),
    WorkflowState.LINKING: frozenset({WorkflowState.LINKED, WorkflowState.CONFIRMING}),
    WorkflowState.LINKED: frozenset({WorkflowState.LOADING}),
}


@dataclass(frozen=True, slots=True)
class LinkOutcome:
    status: LinkStatus
    record_id: str
    record_name: str
    candidate: RegistryCandidate
    points_awarded: int
    message: str
    next_error: RorLinkError | None = None


class LinkWorkflow:
    """Drives one matching session against a catalog and a registry."""

    def __init__(
        self,
        *,
        catalog: CatalogPort,
        registry: RegistryPort,
        progress: ProgressTracker,
        ranker: CandidateRanker | None = None,
        identifier_type: RegistryIdentifierType | None = None,
        locales: Sequence[str] = ("en_GB", "da_DK"),
    ) -> None:
        self._catalog = catalog
        self._registry = registry
        self._progress = progress
        self._ranker = ranker or CandidateRanker()
        self._identifier_type = identifier_type or RegistryIdentifierType()
        self._locales = tuple(locales)

        self._state = WorkflowState.IDLE
        self._busy = False
        self._record: CatalogRecord | None = None
        self._candidates: list[RegistryCandidate] = []
        self._selected: int | None = None

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def record(self) -> CatalogRecord | None:
        return self._record

    @property
    def record_name(self) -> str:
        if self._record is None:
            return ""
        return self._record.display_name(self._locales)

    @property
    def candidates(self) -> tuple[RegistryCandidate, ...]:
        return tuple(self._candidates)

    @property
    def selected_index(self) -> int | None:
        return self._selected

    @property
    def selected_candidate(self) -> RegistryCandidate | None:
        if self._selected is None:
            return None
        return self._candidates[self._selected]

    @property
    def progress(self) -> ProgressTracker:
        return self._progress

    @property
    def registry_suffix(self) -> str:
        return self._identifier_type.suffix

    async def load_next(self) -> CatalogRecord:
        """Draw one eligible record from the catalog and search ROR for it.

        Raises ``NotFoundEligible`` when the draw misses; the caller decides whether
        to try again.
        """
        with self._operation():
            return await self._load_next()

    def select(self, index: int) -> RegistryCandidate:
        self._ensure_idle_operation()
        self._select_unguarded(index)
        return self._candidates[index]

    def clear_selection(self) -> None:
        self._ensure_idle_operation()
        self._transition(WorkflowState.LOADED)
        self._selected = None

    def begin_confirm(self) -> RegistryCandidate:
        self._ensure_idle_operation()
        _record, candidate = self._require_selection()
        self._transition(WorkflowState.CONFIRMING)
        return candidate

    def cancel_confirm(self) -> None:
        self._ensure_idle_operation()
        self._require_state(WorkflowState.CONFIRMING)
        self._transition(WorkflowState.SELECTED)

    async def confirm_link(self, selection: int | None = None) -> LinkOutcome:
        """Write the selected candidate's ROR id to the freshest copy of the record."""

        with self._operation():
            if selection is not None:
                if self._state is WorkflowState.CONFIRMING:
                    self._transition(WorkflowState.SELECTED)
                self._select_unguarded(selection)
            record, candidate = self._require_selection()
            if self._state is WorkflowState.SELECTED:
                self._transition(WorkflowState.CONFIRMING)
            self._require_state(WorkflowState.CONFIRMING)

            self._transition(WorkflowState.LINKING)
            try:
                outcome = await self._write_link(record, candidate)
            except Exception as exc:
                self._transition(WorkflowState.CONFIRMING)
                log.warning("Failed to write ROR link for %s: %s", record.id, exc)
                raise
            self._transition(WorkflowState.LINKED)

            try:
                await self._load_next()
            except RorLinkError as exc:
                log.info("Could not load the next organisation: %s", exc)
                return replace(outcome, next_error=exc)
            return outcome

    async def _write_link(self, record: CatalogRecord, candidate: RegistryCandidate) -> LinkOutcome:
        latest = await self._catalog.fetch_by_id(record.id)
        name = latest.display_name(self._locales) or FALLBACK_RECORD_NAME

        if latest.has_registry_identifier(self.registry_suffix):
            log.info("%s already carries a ROR id, skipping write", latest.id)
            return LinkOutcome(
                status=LinkStatus.ALREADY_LINKED,
                record_id=latest.id,
                record_name=name,
                candidate=candidate,
                points_awarded=0,
                message="Already linked: ROR ID is present.",
            )

        identifier = ClassifiedId(
            id=candidate.id,
            type_uri=self._identifier_type.uri,
            type_term=self._identifier_type.term_map(),
        )
        identifiers = append_registry_identifier(
            latest.identifiers, identifier, suffix=self.registry_suffix
        )
        await self._catalog.update(latest.id, latest.version, identifiers)

        points, _entry = self._progress.record_link(
            record_id=latest.id,
            display_name=name,
            registry_id=candidate.id,
            score=candidate.score,
            match_type=candidate.match_type.value,
        )
        log.info("Linked %s to %s (+%s points)", latest.id, candidate.id, points)
        return LinkOutcome(
            status=LinkStatus.LINKED,
            record_id=latest.id,
            record_name=name,
            candidate=candidate,
            points_awarded=points,
            message=f"Linked ROR to “{name}”.",
        )

    async def _load_next(self) -> CatalogRecord:
        self._transition(WorkflowState.LOADING)
        self._record = None
        self._candidates = []
        self._selected = None

        try:
            record = await self._catalog.fetch_random_eligible()
        except Exception:
            self._transition(WorkflowState.IDLE)
            raise
        if record is None:
            self._transition(WorkflowState.IDLE)
            raise NotFoundEligible(NO_ELIGIBLE_MESSAGE)

        self._record = record
        name = record.display_name(self._locales).strip()
        log.info("Loaded %s (%s)", record.id, name or "<unnamed>")
        try:
            candidates = await self._registry.search_by_name(name) if name else []
        except Exception:
            self._transition(WorkflowState.LOADED)
            raise

        self._candidates = self._ranker.rank(candidates)
        self._selected = self._ranker.preselect(self._candidates)
        self._transition(
            WorkflowState.SELECTED if self._selected is not None else WorkflowState.LOADED
        )
        return record

    def _select_unguarded(self, index: int) -> None:
        if not 0 <= index < len(self._candidates):
            raise IndexError(f"No candidate at position {index}")
        self._transition(WorkflowState.SELECTED)
        self._selected = index

    def _require_selection(self) -> tuple[CatalogRecord, RegistryCandidate]:
        if self._record is None or self._selected is None:
            raise IllegalTransitionError("Select a record and a ROR candidate first")
        return self._record, self._candidates[self._selected]

    def _require_state(self, expected: WorkflowState) -> None:
        if self._state is not expected:
            raise IllegalTransitionError(
                f"Expected workflow state {expected.value}, got {self._state.value}"
            )

    def _transition(self, target: WorkflowState) -> None:
        if target not in _TRANSITIONS[self._state]:
            raise IllegalTransitionError(
                f"Cannot move from {self._state.value} to {target.value}"
            )
        self._state = target

    def _ensure_idle_operation(self) -> None:
        if self._busy:
            raise WorkflowBusyError("Another operation is still running")

    @contextmanager
    def _operation(self) -> Iterator[None]:
        self._ensure_idle_operation()
        self._busy = True
        try:
            yield
        finally:
            self._busy = False
