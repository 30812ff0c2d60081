from __future__ import annotations

import pytest

from rorlink.adapters.key_value import InMemoryKeyValueStore
from rorlink.config import PureConfig, ResilienceConfig, RorConfig, build_pure_resilience
from tests.support.http import API_KEY, PURE_BASE_URL, ROR_BASE_URL


@pytest.fixture
def pure_config() -> PureConfig:
    return PureConfig(
        api_key=API_KEY,
        resilience=build_pure_resilience(base_url=PURE_BASE_URL, api_key=API_KEY, rate_limit_ms=0),
    )


@pytest.fixture
def ror_config() -> RorConfig:
    return RorConfig(
        resilience=ResilienceConfig(
            name="ror",
            base_url=f"{ROR_BASE_URL}/",
            default_headers={"Accept": "application/json"},
        )
    )


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()
