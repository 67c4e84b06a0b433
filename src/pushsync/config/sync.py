"""Synchronization defaults for the remote-data observer."""

from __future__ import annotations

from dataclasses import dataclass

from pushsync.domain.reconciliation import IN_APP_MESSAGES_PAYLOAD_TYPE

from .env import optional_env_var
from .errors import ConfigurationError

DEFAULT_POLL_INTERVAL_SECONDS = 300.0


@dataclass(frozen=True, slots=True)
class SyncConfig:
    payload_type: str = IN_APP_MESSAGES_PAYLOAD_TYPE
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    channel_id: str | None = None


def get_sync_config() -> SyncConfig:
    interval_value = optional_env_var("PUSHSYNC_POLL_INTERVAL_SECONDS")
    interval = DEFAULT_POLL_INTERVAL_SECONDS
    if interval_value is not None:
        try:
            interval = float(interval_value)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid poll interval: {interval_value!r}") from exc
        if interval <= 0:
            raise ConfigurationError("Poll interval must be positive")
    return SyncConfig(
        poll_interval_seconds=interval,
        channel_id=optional_env_var("PUSHSYNC_CHANNEL_ID"),
    )
