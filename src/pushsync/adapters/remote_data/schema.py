"""Pydantic models for the remote-data API response."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pushsync.domain.timestamps import parse_timestamp


class RemoteDataBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class PayloadModel(RemoteDataBaseModel):
    type: str = Field(min_length=1)
    timestamp: int
    data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: object) -> int:
        return parse_timestamp(value)


class RemoteDataResponse(RemoteDataBaseModel):
    """Either a bare list of payloads or an object with a ``payloads`` list."""

    payloads: list[PayloadModel] = Field(default_factory=list["PayloadModel"])

    @model_validator(mode="before")
    @classmethod
    def _wrap_bare_list(cls, value: object) -> object:
        if isinstance(value, list):
            return {"payloads": value}
        return value
