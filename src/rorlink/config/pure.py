"""Pure (catalog) configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import int_env_var, list_env_var, optional_env_var, require_env_vars
from .errors import ConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_RATE_LIMIT_MS = 350
DEFAULT_ROR_TYPE_URI = "/dk/atira/pure/ueoexternalorganisation/ueoexternalorganisationsources/ror"
DEFAULT_ROR_TYPE_TERM = "ROR ID"
DEFAULT_LOCALES = ("en_GB", "da_DK")
PURE_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class RegistryIdentifierType:
    """The classification Pure uses for ROR identifiers on external organisations."""

    uri: str = DEFAULT_ROR_TYPE_URI
    term: str = DEFAULT_ROR_TYPE_TERM

    @property
    def suffix(self) -> str:
        """Last path segment of ``uri``; identifiers whose type ends with it are ROR ids."""
        return "/" + self.uri.rstrip("/").rsplit("/", 1)[-1]

    def term_map(self) -> dict[str, str]:
        return {"en_GB": self.term, "da_DK": self.term}


@dataclass(frozen=True, slots=True)
class PureConfig:
    api_key: str
    resilience: ResilienceConfig
    identifier_type: RegistryIdentifierType = field(default_factory=RegistryIdentifierType)
    locales: tuple[str, ...] = DEFAULT_LOCALES


def build_pure_resilience(
    *,
    base_url: str,
    api_key: str,
    rate_limit_ms: int = DEFAULT_RATE_LIMIT_MS,
) -> ResilienceConfig:
    ratelimit = RateLimit.min_interval(rate_limit_ms / 1000) if rate_limit_ms > 0 else None
    return ResilienceConfig(
        name="pure",
        base_url=base_url.rstrip("/") + "/",
        timeout_seconds=PURE_TIMEOUT_SECONDS,
        ratelimit=ratelimit,
        retry=RetryPolicy(total=0),
        # Never cache: every read must carry the catalog's current version.
        cache=None,
        default_headers={"Accept": "application/json", "api-key": api_key},
    )


def get_pure_config() -> PureConfig:
    values = require_env_vars(("PURE_BASE_URL", "PURE_API_KEY"))
    api_key = values["PURE_API_KEY"]
    resilience = build_pure_resilience(
        base_url=values["PURE_BASE_URL"],
        api_key=api_key,
        rate_limit_ms=int_env_var("PURE_RATE_LIMIT_MS", DEFAULT_RATE_LIMIT_MS),
    )
    type_uri = optional_env_var("PURE_ROR_TYPE_URI", DEFAULT_ROR_TYPE_URI)
    if not type_uri.strip("/"):
        raise ConfigurationError(f"PURE_ROR_TYPE_URI must name a classification, got {type_uri!r}")
    identifier_type = RegistryIdentifierType(
        uri=type_uri,
        term=optional_env_var("PURE_ROR_TYPE_TERM", DEFAULT_ROR_TYPE_TERM),
    )
    return PureConfig(
        api_key=api_key,
        resilience=resilience,
        identifier_type=identifier_type,
        locales=list_env_var("PURE_LOCALES", DEFAULT_LOCALES),
    )
