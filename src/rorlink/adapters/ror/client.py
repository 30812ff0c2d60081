"""ROR API client: affiliation search with best-effort location enrichment."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING, Final

import httpx
from pydantic import ValidationError

from rorlink.adapters.http_resilience import ResilientClient
from rorlink.domain.errors import MalformedResponse, TransportError
from rorlink.domain.ranking import CandidateRanker

from .schema import RorAffiliationResponse, RorOrganizationDetail
from .translator import ror_id_suffix, translate_affiliation_items, with_locations

if TYPE_CHECKING:
    from types import TracebackType

    from rorlink.adapters.http_resilience import ClientFactory
    from rorlink.config.ror import RorConfig
    from rorlink.domain.model import RegistryCandidate

log = getLogger(__name__)

SEARCH_PATH: Final[str] = "organizations"
DETAIL_PATH: Final[str] = "v2/organizations"


class RorClient:
    """Unthrottled access to the public ROR API."""

    def __init__(
        self,
        *,
        config: RorConfig,
        client_factory: ClientFactory | None = None,
        ranker: CandidateRanker | None = None,
    ) -> None:
        self._config = config
        self._http = (client_factory or ResilientClient)(config.resilience)
        self._ranker = ranker or CandidateRanker(preselect_threshold=config.preselect_threshold)

    async def __aenter__(self) -> RorClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def search_by_name(self, name: str) -> list[RegistryCandidate]:
        """Search by affiliation string; return the ranked top candidates with locations."""

        query = name.strip()
        if not query:
            return []

        try:
            response = await self._http.get(SEARCH_PATH, params={"affiliation": query})
        except httpx.HTTPError as exc:
            raise TransportError(f"ROR affiliation search failed: {exc}") from exc
        if not response.is_success:
            raise TransportError(
                f"ROR affiliation search failed: {response.status_code}",
                status_code=response.status_code,
            )
        try:
            payload = RorAffiliationResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise MalformedResponse("Unexpected ROR affiliation search payload") from exc

        ranked = self._ranker.rank(translate_affiliation_items(payload.items))
        top = ranked[: self._config.detail_lookup_limit]
        log.info("ROR returned %s candidates for %r", len(ranked), query)
        return list(await asyncio.gather(*(self._enrich(candidate) for candidate in top)))

    async def _enrich(self, candidate: RegistryCandidate) -> RegistryCandidate:
        path = f"{DETAIL_PATH}/{ror_id_suffix(candidate.id)}"
        try:
            response = await self._http.get(path)
            if not response.is_success:
                log.warning(
                    "Failed to fetch location for %s: %s", candidate.id, response.status_code
                )
                return candidate
            detail = RorOrganizationDetail.model_validate_json(response.content)
        except (httpx.HTTPError, ValidationError) as exc:
            log.warning("Failed to fetch location for %s: %s", candidate.id, exc)
            return candidate
        return with_locations(candidate, detail.locations)
