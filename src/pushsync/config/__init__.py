"""Application configuration helpers."""

from __future__ import annotations

from .application import AppConfig, get_app_config
from .env import env_flag, optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging, parse_log_level
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sync import IN_APP_MESSAGES_PAYLOAD_TYPE, SyncConfig, get_sync_config

__all__ = [
    "IN_APP_MESSAGES_PAYLOAD_TYPE",
    "AppConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "env_flag",
    "get_app_config",
    "get_database_config",
    "get_storage_config",
    "get_sync_config",
    "optional_env_var",
    "parse_log_level",
    "require_env_vars",
]
