"""Application credentials and endpoint configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pushsync import __version__

from .env import env_flag, optional_env_var, require_env_vars
from .errors import ConfigurationError
from .http_resilience import RateLimit, ResilienceConfig
from .logging import parse_log_level

log = logging.getLogger(__name__)

DEFAULT_REMOTE_DATA_URL = "https://remote-data.urbanairship.com/"
DEFAULT_PLATFORM = "android"
DEFAULT_DEVELOPMENT_LOG_LEVEL = logging.DEBUG
DEFAULT_PRODUCTION_LOG_LEVEL = logging.ERROR
REMOTE_DATA_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True, kw_only=True)
class AppConfig:
    """Holds the app credentials and endpoints for one build mode."""

    development_app_key: str | None = None
    development_app_secret: str | None = None
    production_app_key: str | None = None
    production_app_secret: str | None = None
    in_production: bool = False
    remote_data_url: str = DEFAULT_REMOTE_DATA_URL
    platform: str = DEFAULT_PLATFORM
    locale: str | None = None
    development_log_level: int = DEFAULT_DEVELOPMENT_LOG_LEVEL
    production_log_level: int = DEFAULT_PRODUCTION_LOG_LEVEL

    def __post_init__(self) -> None:
        mode = "production" if self.in_production else "development"
        if not _is_valid_credential(self.app_key):
            raise ConfigurationError(f"{self.app_key!r} is not a valid {mode} app key")
        if not _is_valid_credential(self.app_secret):
            raise ConfigurationError(f"{self.app_secret!r} is not a valid {mode} app secret")
        if not self.remote_data_url.strip():
            raise ConfigurationError("Remote data URL is empty")

        if self.production_app_key is not None and (
            self.production_app_key == self.development_app_key
        ):
            log.warning("Production app key matches development app key")
        if self.production_app_secret is not None and (
            self.production_app_secret == self.development_app_secret
        ):
            log.warning("Production app secret matches development app secret")

    @property
    def app_key(self) -> str | None:
        return self.production_app_key if self.in_production else self.development_app_key

    @property
    def app_secret(self) -> str | None:
        return self.production_app_secret if self.in_production else self.development_app_secret

    @property
    def log_level(self) -> int:
        return self.production_log_level if self.in_production else self.development_log_level

    def remote_data_resilience(self) -> ResilienceConfig:
        return ResilienceConfig(
            name="remote-data",
            base_url=self.remote_data_url,
            timeout_seconds=REMOTE_DATA_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=1, per_seconds=1.0),
            default_headers={"User-Agent": f"pushsync/{__version__}"},
        )


def _is_valid_credential(value: str | None) -> bool:
    if value is None:
        return False
    return bool(value) and " " not in value


def get_app_config() -> AppConfig:
    """Load the app configuration for the mode selected by ``PUSHSYNC_IN_PRODUCTION``."""

    in_production = env_flag("PUSHSYNC_IN_PRODUCTION")
    prefix = "PUSHSYNC_PRODUCTION" if in_production else "PUSHSYNC_DEVELOPMENT"
    require_env_vars((f"{prefix}_APP_KEY", f"{prefix}_APP_SECRET"))

    return AppConfig(
        development_app_key=optional_env_var("PUSHSYNC_DEVELOPMENT_APP_KEY"),
        development_app_secret=optional_env_var("PUSHSYNC_DEVELOPMENT_APP_SECRET"),
        production_app_key=optional_env_var("PUSHSYNC_PRODUCTION_APP_KEY"),
        production_app_secret=optional_env_var("PUSHSYNC_PRODUCTION_APP_SECRET"),
        in_production=in_production,
        remote_data_url=optional_env_var("PUSHSYNC_REMOTE_DATA_URL") or DEFAULT_REMOTE_DATA_URL,
        platform=optional_env_var("PUSHSYNC_PLATFORM") or DEFAULT_PLATFORM,
        locale=optional_env_var("PUSHSYNC_LOCALE"),
        development_log_level=parse_log_level(
            optional_env_var("PUSHSYNC_DEVELOPMENT_LOG_LEVEL"), DEFAULT_DEVELOPMENT_LOG_LEVEL
        ),
        production_log_level=parse_log_level(
            optional_env_var("PUSHSYNC_PRODUCTION_LOG_LEVEL"), DEFAULT_PRODUCTION_LOG_LEVEL
        ),
    )
