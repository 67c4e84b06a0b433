"""Pydantic models describing in-app message definitions in remote data."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pushsync.domain.timestamps import parse_timestamp


class MessageBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class AudiencePayload(MessageBaseModel):
    new_user: bool | None = None
    test_devices: list[str] = Field(default_factory=list)


class MessagePayload(MessageBaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    message_id: str = Field(min_length=1)
    audience: AudiencePayload | None = None


class _WindowModel(MessageBaseModel):
    start: int | None = None
    end: int | None = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def _parse_bound(cls, value: object) -> object:
        if value is None:
            return None
        return parse_timestamp(value)


class ScheduleDefinition(_WindowModel):
    """Full definition used when a message is scheduled for the first time."""

    message: MessagePayload
    triggers: list[dict[str, object]] = Field(default_factory=list)
    limit: int = Field(default=1, ge=0)
    priority: int = 0


class ScheduleEditsDefinition(_WindowModel):
    """Subset of a definition that may change an existing schedule."""

    message: dict[str, object] | None = None
    limit: int | None = Field(default=None, ge=0)
    priority: int | None = None
