"""Translate remote-data API responses into domain payloads."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, cast

from pushsync.domain.model import RemoteDataPayload

from .schema import RemoteDataResponse

if TYPE_CHECKING:
    from pushsync.domain.model import JsonMap


def parse_payloads(raw: object, *, metadata: JsonMap) -> list[RemoteDataPayload]:
    """Validate ``raw`` and stamp every payload with the request ``metadata``.

    Raises ``pydantic.ValidationError`` when the body does not match the schema.
    """

    response = RemoteDataResponse.model_validate(raw)
    return [
        RemoteDataPayload(
            type=payload.type,
            timestamp=payload.timestamp,
            data=payload.data,
            metadata=dict(metadata),
        )
        for payload in response.payloads
    ]


def payload_to_json(payload: RemoteDataPayload) -> dict[str, object]:
    return {
        "type": payload.type,
        "timestamp": payload.timestamp,
        "data": dict(payload.data),
        "metadata": dict(payload.metadata),
    }


def payload_from_json(value: object) -> RemoteDataPayload | None:
    """Rebuild a retained payload; ``None`` if ``value`` is not one."""

    if not isinstance(value, Mapping):
        return None
    stored = cast("Mapping[str, object]", value)
    payload_type = stored.get("type")
    timestamp = stored.get("timestamp")
    if not isinstance(payload_type, str):
        return None
    if isinstance(timestamp, bool) or not isinstance(timestamp, int):
        return None
    data = stored.get("data")
    metadata = stored.get("metadata")
    return RemoteDataPayload(
        type=payload_type,
        timestamp=timestamp,
        data=cast("JsonMap", data) if isinstance(data, Mapping) else {},
        metadata=cast("JsonMap", metadata) if isinstance(metadata, Mapping) else {},
    )
