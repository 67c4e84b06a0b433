"""Translate raw remote-data entries into domain items, schedule infos and edits."""

from __future__ import annotations

from collections.abc import Mapping
from typing import cast

from pydantic import ValidationError

from pushsync.domain.model import (
    Audience,
    BoundEdit,
    RemoteItem,
    ScheduleEdits,
    ScheduleInfo,
)
from pushsync.domain.timestamps import parse_timestamp

from .schema import AudiencePayload, ScheduleDefinition, ScheduleEditsDefinition

CREATED_KEY = "created"
UPDATED_KEY = "last_updated"
MESSAGE_KEY = "message"
MESSAGE_ID_KEY = "message_id"


class MalformedItemError(ValueError):
    """Raised when a remote-data entry cannot be turned into a usable item."""


def parse_message_id(raw: Mapping[str, object]) -> str | None:
    message = raw.get(MESSAGE_KEY)
    if not isinstance(message, Mapping):
        return None
    message_id = cast(Mapping[str, object], message).get(MESSAGE_ID_KEY)
    if isinstance(message_id, str) and message_id:
        return message_id
    return None


def parse_remote_item(raw: object) -> RemoteItem:
    """Validate identity and timestamps of one entry; the rest stays unparsed."""

    if not isinstance(raw, Mapping):
        raise MalformedItemError(f"Remote item is not an object: {raw!r}")
    entry = cast(Mapping[str, object], raw)

    try:
        created_at = parse_timestamp(entry.get(CREATED_KEY))
        updated_at = parse_timestamp(entry.get(UPDATED_KEY))
    except ValueError as exc:
        raise MalformedItemError(f"Invalid in-app message timestamps: {exc}") from exc

    message_id = parse_message_id(entry)
    if message_id is None:
        raise MalformedItemError("Missing in-app message id")

    try:
        return RemoteItem(
            id=message_id,
            created_at=created_at,
            updated_at=updated_at,
            definition=entry,
        )
    except ValueError as exc:
        raise MalformedItemError(str(exc)) from exc


def _audience(payload: AudiencePayload | None) -> Audience | None:
    if payload is None:
        return None
    return Audience(new_user=payload.new_user, test_devices=tuple(payload.test_devices))


def parse_schedule_info(item: RemoteItem) -> ScheduleInfo:
    try:
        definition = ScheduleDefinition.model_validate(item.definition)
        return ScheduleInfo(
            message_id=item.id,
            message=definition.message.model_dump(mode="json", exclude_none=True),
            audience=_audience(definition.message.audience),
            triggers=tuple(definition.triggers),
            start=definition.start,
            end=definition.end,
            priority=definition.priority,
            limit=definition.limit,
        )
    except (ValidationError, ValueError) as exc:
        raise MalformedItemError(f"Failed to parse in-app message {item.id}: {exc}") from exc


def _bound(value: int | None) -> BoundEdit:
    return BoundEdit.unchanged() if value is None else BoundEdit.at(value)


def parse_schedule_edits(item: RemoteItem) -> ScheduleEdits:
    try:
        definition = ScheduleEditsDefinition.model_validate(item.definition)
    except ValidationError as exc:
        raise MalformedItemError(f"Failed to parse in-app message edits {item.id}: {exc}") from exc
    return ScheduleEdits(
        start=_bound(definition.start),
        end=_bound(definition.end),
        priority=definition.priority,
        limit=definition.limit,
        message=definition.message,
    )
