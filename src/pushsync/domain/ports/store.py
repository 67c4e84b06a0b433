"""Port for durable key/value persistence."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TypeAlias, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

JsonValue: TypeAlias = "None | bool | int | float | str | list[JsonValue] | dict[str, JsonValue]"


@runtime_checkable
class Store(Protocol):
    """Synchronous key/value store; every write is durable once the call returns."""

    def get_long(self, key: str, default: int) -> int: ...

    def put_long(self, key: str, value: int) -> None: ...

    def get_json(self, key: str, default: JsonValue = None) -> JsonValue: ...

    def put_json(self, key: str, value: JsonValue) -> None: ...

    def put_many(self, values: Mapping[str, JsonValue]) -> None:
        """Write several keys in one transaction, in iteration order."""
        ...
