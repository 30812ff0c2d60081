"""Application configuration helpers."""

from __future__ import annotations

from rorlink.common.logging import configure_logging

from .env import int_env_var, list_env_var, optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .pure import PureConfig, RegistryIdentifierType, build_pure_resilience, get_pure_config
from .ror import RorConfig, build_ror_resilience, get_ror_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "PureConfig",
    "RateLimit",
    "RegistryIdentifierType",
    "ResilienceConfig",
    "RetryPolicy",
    "RorConfig",
    "StorageConfig",
    "build_pure_resilience",
    "build_ror_resilience",
    "configure_logging",
    "get_database_config",
    "get_pure_config",
    "get_ror_config",
    "get_storage_config",
    "int_env_var",
    "list_env_var",
    "optional_env_var",
    "require_env_vars",
]
