"""In-app message definitions carried by remote data."""

from __future__ import annotations

from .translator import (
    MalformedItemError,
    parse_message_id,
    parse_remote_item,
    parse_schedule_edits,
    parse_schedule_info,
)

__all__ = [
    "MalformedItemError",
    "parse_message_id",
    "parse_remote_item",
    "parse_schedule_edits",
    "parse_schedule_info",
]
