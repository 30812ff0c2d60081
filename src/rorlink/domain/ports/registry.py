"""Port for querying the ROR registry."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from rorlink.domain.model import RegistryCandidate


class RegistryPort(Protocol):
    async def search_by_name(self, name: str) -> list[RegistryCandidate]:
        """Return ranked, location-enriched candidates for an affiliation string."""
        ...


__all__ = ["RegistryPort"]
