"""Pure API client for external organisations."""

from __future__ import annotations

import random
from logging import getLogger
from typing import TYPE_CHECKING, Final

import httpx
from pydantic import ValidationError

from rorlink.adapters.http_resilience import ResilientClient
from rorlink.domain.errors import ConflictError, MalformedResponse, TransportError
from rorlink.domain.ports.catalog import UpdateResult

from .schema import PureExternalOrganization, PureExternalOrganizationPage
from .translator import serialize_identifiers, translate_external_organization

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import TracebackType

    from pydantic import BaseModel

    from rorlink.adapters.http_resilience import ClientFactory
    from rorlink.config.pure import PureConfig
    from rorlink.domain.model import CatalogRecord, Identifier

log = getLogger(__name__)

COLLECTION_PATH: Final[str] = "external-organizations"
CONFLICT_STATUSES: Final[frozenset[int]] = frozenset({409, 412})


class PureClient:
    """Catalog access for external organisations, throttled by one shared rate limiter."""

    def __init__(
        self,
        *,
        config: PureConfig,
        client_factory: ClientFactory | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._config = config
        self._suffix = config.identifier_type.suffix
        self._http = (client_factory or ResilientClient)(config.resilience)
        self._rng = rng or random.Random()  # noqa: S311

    async def __aenter__(self) -> PureClient:
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

    async def count(self) -> int:
        page = await self._fetch_page(offset=0)
        return page.count

    async def fetch_random_eligible(self) -> CatalogRecord | None:
        """Read one random position; return the record there only if it still needs a ROR id."""

        total = await self.count()
        if total <= 0:
            log.info("Pure reports no external organisations")
            return None
        offset = self._rng.randrange(total)
        page = await self._fetch_page(offset=offset)
        if not page.items:
            log.info("No external organisation at offset %s", offset)
            return None
        record = translate_external_organization(page.items[0], locales=self._config.locales)
        if not record.is_eligible(self._suffix):
            log.debug(
                "Skipping %s at offset %s: status=%s, has_ror=%s",
                record.id,
                offset,
                record.workflow_status,
                record.has_registry_identifier(self._suffix),
            )
            return None
        return record

    async def fetch_by_id(self, record_id: str) -> CatalogRecord:
        response = await self._send("GET", f"{COLLECTION_PATH}/{record_id}")
        _raise_for_status(response, what=f"fetch organization {record_id}")
        payload = _parse_model(response, PureExternalOrganization)
        return translate_external_organization(payload, locales=self._config.locales)

    async def update(
        self,
        record_id: str,
        version: str,
        identifiers: Sequence[Identifier],
    ) -> UpdateResult:
        body = {"version": version, "identifiers": serialize_identifiers(identifiers)}
        response = await self._send("PUT", f"{COLLECTION_PATH}/{record_id}", json=body)

        try:
            payload: object = response.json()
        except ValueError:
            payload = {"status": response.status_code}

        if response.status_code in CONFLICT_STATUSES:
            log.warning("Version conflict writing %s (version %s)", record_id, version)
            raise ConflictError(
                f"PUT failed: {response.status_code} (stale version, reload and retry)",
                status_code=response.status_code,
            )
        if not response.is_success:
            raise TransportError(
                f"PUT failed: {response.status_code}", status_code=response.status_code
            )

        if not isinstance(payload, dict):
            return UpdateResult(
                status_code=response.status_code, payload={"status": response.status_code}
            )
        record: CatalogRecord | None = None
        try:
            record = translate_external_organization(
                PureExternalOrganization.model_validate(payload), locales=self._config.locales
            )
        except ValidationError:
            log.debug("PUT response for %s is not a full organisation", record_id)
        return UpdateResult(status_code=response.status_code, record=record, payload=payload)

    async def _fetch_page(self, *, offset: int) -> PureExternalOrganizationPage:
        response = await self._send(
            "GET", COLLECTION_PATH, params={"size": "1", "offset": str(offset)}
        )
        _raise_for_status(response, what="fetch organizations")
        return _parse_model(response, PureExternalOrganizationPage)

    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: object = None,
    ) -> httpx.Response:
        try:
            if method == "PUT":
                return await self._http.put(path, json=json)
            return await self._http.get(path, params=params)
        except httpx.HTTPError as exc:
            raise TransportError(f"Pure request failed: {exc}") from exc


def _raise_for_status(response: httpx.Response, *, what: str) -> None:
    if not response.is_success:
        raise TransportError(
            f"Failed to {what}: {response.status_code} {response.reason_phrase}",
            status_code=response.status_code,
        )


def _parse_model[ModelT: BaseModel](response: httpx.Response, model: type[ModelT]) -> ModelT:
    try:
        return model.model_validate_json(response.content)
    except ValidationError as exc:
        raise MalformedResponse(f"Unexpected Pure response for {response.url}") from exc
