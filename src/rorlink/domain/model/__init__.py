"""Domain model for the Pure to ROR matching session."""

from __future__ import annotations

from .catalog import (
    ELIGIBLE_STATUSES,
    CatalogRecord,
    ClassifiedId,
    Identifier,
    OpaqueIdentifier,
    WorkflowStatus,
    append_registry_identifier,
    has_registry_identifier,
)
from .progress import Level, LinkRecord, ProgressState
from .registry import MatchType, RegistryCandidate, RegistryLocation, RegistryName

__all__ = [
    "ELIGIBLE_STATUSES",
    "CatalogRecord",
    "ClassifiedId",
    "Identifier",
    "Level",
    "LinkRecord",
    "MatchType",
    "OpaqueIdentifier",
    "ProgressState",
    "RegistryCandidate",
    "RegistryLocation",
    "RegistryName",
    "WorkflowStatus",
    "append_registry_identifier",
    "has_registry_identifier",
]
