"""ROR (registry) configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var
from .http_resilience import CacheConfig, ResilienceConfig, RetryPolicy

DEFAULT_ROR_BASE_URL = "https://api.ror.org"
ROR_TIMEOUT_SECONDS = 20.0
DETAIL_LOOKUP_LIMIT = 10
PRESELECT_THRESHOLD = 0.7


def _is_organization_payload(payload: object) -> bool:
    if not isinstance(payload, dict):
        return False
    return bool(payload.get("id"))  # pyright: ignore[reportUnknownMemberType]


@dataclass(frozen=True, slots=True)
class RorConfig:
    resilience: ResilienceConfig
    detail_lookup_limit: int = DETAIL_LOOKUP_LIMIT
    preselect_threshold: float = PRESELECT_THRESHOLD


def build_ror_resilience(*, base_url: str = DEFAULT_ROR_BASE_URL) -> ResilienceConfig:
    return ResilienceConfig(
        name="ror",
        base_url=base_url.rstrip("/") + "/",
        timeout_seconds=ROR_TIMEOUT_SECONDS,
        retry=RetryPolicy(total=0),
        cache=CacheConfig(should_cache=_is_organization_payload),
        default_headers={"Accept": "application/json"},
    )


def get_ror_config() -> RorConfig:
    base_url = optional_env_var("ROR_BASE_URL", DEFAULT_ROR_BASE_URL)
    return RorConfig(resilience=build_ror_resilience(base_url=base_url))
