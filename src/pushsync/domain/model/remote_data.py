"""Remote-data payloads, the items they carry, and the convergence cursor."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TypeAlias

JsonMap: TypeAlias = Mapping[str, object]


def _empty_map() -> dict[str, object]:
    return {}


@dataclass(frozen=True, slots=True)
class RemoteDataPayload:
    """One versioned snapshot delivered by the remote-data feed for a payload type.

    ``timestamp`` is the feed-assigned version in epoch milliseconds. ``metadata``
    fingerprints the delivery context (request URL, locale) that produced the
    snapshot; two payloads with equal timestamps but different metadata are
    different snapshots.
    """

    type: str
    timestamp: int
    data: JsonMap = field(default_factory=_empty_map)
    metadata: JsonMap = field(default_factory=_empty_map)

    @classmethod
    def empty(cls, payload_type: str, *, metadata: JsonMap | None = None) -> RemoteDataPayload:
        return cls(type=payload_type, timestamp=0, data={}, metadata=dict(metadata or {}))

    def entries(self, key: str) -> list[object]:
        value = self.data.get(key)
        if isinstance(value, list):
            return list(value)  # pyright: ignore[reportUnknownArgumentType]
        return []


@dataclass(frozen=True, slots=True)
class RemoteItem:
    """One message definition inside a payload, with its timestamps parsed."""

    id: str
    created_at: int
    updated_at: int
    definition: JsonMap

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Remote item id must be non-empty")
        if self.created_at > self.updated_at:
            raise ValueError(
                f"Remote item {self.id} was created ({self.created_at}) "
                f"after its last update ({self.updated_at})"
            )


@dataclass(frozen=True, slots=True)
class ConvergenceCursor:
    """Identifies the last payload whose effects were fully applied."""

    timestamp: int = -1
    metadata: JsonMap = field(default_factory=_empty_map)

    @classmethod
    def from_payload(cls, payload: RemoteDataPayload) -> ConvergenceCursor:
        return cls(timestamp=payload.timestamp, metadata=dict(payload.metadata))

    def already_applied(self, payload: RemoteDataPayload) -> bool:
        return payload.timestamp == self.timestamp and payload.metadata == self.metadata
