"""Domain port definitions for adapters."""

from __future__ import annotations

from .audience import AudiencePredicate
from .remote_data import RemoteDataFeed
from .scheduling import Scheduler, SchedulerError
from .store import JsonValue, Store

__all__ = [
    "AudiencePredicate",
    "JsonValue",
    "RemoteDataFeed",
    "Scheduler",
    "SchedulerError",
    "Store",
]
