"""SQLAlchemy adapter package for pushsync."""

from __future__ import annotations

from .mappings import metadata, preference_table, schedule_table
from .scheduler import SqlAlchemyScheduler
from .session import StartupError, configured_engine, is_started, session_factory, shutdown, startup
from .store import SqlAlchemyPreferenceStore

__all__ = [
    "SqlAlchemyPreferenceStore",
    "SqlAlchemyScheduler",
    "StartupError",
    "configured_engine",
    "is_started",
    "metadata",
    "preference_table",
    "schedule_table",
    "session_factory",
    "shutdown",
    "startup",
]
