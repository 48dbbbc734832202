"""Application configuration helpers."""

from __future__ import annotations

from .dms import DmsConfig, get_dms_config
from .env import env_flag, env_float, env_int, optional_env_var, require_env_vars
from .errors import ConfigurationError, InvalidConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sync import LocationConfig, SyncConfig, get_location_config, get_sync_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "DmsConfig",
    "InvalidConfigurationError",
    "LocationConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "env_flag",
    "env_float",
    "env_int",
    "get_database_config",
    "get_dms_config",
    "get_location_config",
    "get_storage_config",
    "get_sync_config",
    "optional_env_var",
    "require_env_vars",
]
