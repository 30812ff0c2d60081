"""Application wiring: build clients, progress store and the link workflow."""

from __future__ import annotations

from contextlib import asynccontextmanager
from logging import getLogger
from typing import TYPE_CHECKING

from rorlink.adapters.pure import PureClient
from rorlink.adapters.ror import RorClient
from rorlink.adapters.sqlalchemy import SqlAlchemyKeyValueStore
from rorlink.config import get_pure_config, get_ror_config
from rorlink.domain.progress import ProgressTracker
from rorlink.domain.ranking import CandidateRanker
from rorlink.domain.workflow import LinkWorkflow

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from rorlink.adapters.http_resilience import ClientFactory
    from rorlink.config import PureConfig, RorConfig
    from rorlink.domain.ports.persistence import KeyValueStore

log = getLogger(__name__)


def open_progress_store(*, database_uri: str | None = None) -> SqlAlchemyKeyValueStore:
    return SqlAlchemyKeyValueStore(database_uri=database_uri)


def build_progress_tracker(store: KeyValueStore | None = None) -> ProgressTracker:
    return ProgressTracker(store or open_progress_store())


@asynccontextmanager
async def open_workflow(
    *,
    store: KeyValueStore | None = None,
    pure_config: PureConfig | None = None,
    ror_config: RorConfig | None = None,
    client_factory: ClientFactory | None = None,
) -> AsyncIterator[LinkWorkflow]:
    """Yield a ready workflow; HTTP clients are closed when the block exits."""

    effective_pure = pure_config or get_pure_config()
    effective_ror = ror_config or get_ror_config()
    ranker = CandidateRanker(preselect_threshold=effective_ror.preselect_threshold)
    progress = build_progress_tracker(store)

    log.info(
        "Starting matching session against %s (score=%s)",
        effective_pure.resilience.base_url,
        progress.score,
    )
    async with (
        PureClient(config=effective_pure, client_factory=client_factory) as catalog,
        RorClient(config=effective_ror, client_factory=client_factory, ranker=ranker) as registry,
    ):
        yield LinkWorkflow(
            catalog=catalog,
            registry=registry,
            progress=progress,
            ranker=ranker,
            identifier_type=effective_pure.identifier_type,
            locales=effective_pure.locales,
        )
