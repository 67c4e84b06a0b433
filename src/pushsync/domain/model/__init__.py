"""Domain model for remote data and scheduled in-app messages."""

from __future__ import annotations

from .audience import Audience, DeviceContext
from .remote_data import ConvergenceCursor, JsonMap, RemoteDataPayload, RemoteItem
from .schedules import (
    ELAPSED_END,
    REMOTE_DATA_SOURCE,
    BoundEdit,
    BoundKind,
    InvalidScheduleError,
    Schedule,
    ScheduleEdits,
    ScheduleInfo,
)

__all__ = [
    "ELAPSED_END",
    "REMOTE_DATA_SOURCE",
    "Audience",
    "BoundEdit",
    "BoundKind",
    "ConvergenceCursor",
    "DeviceContext",
    "InvalidScheduleError",
    "JsonMap",
    "RemoteDataPayload",
    "RemoteItem",
    "Schedule",
    "ScheduleEdits",
    "ScheduleInfo",
]
