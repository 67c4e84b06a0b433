"""Schedules owned by the scheduler, the infos that create them, and edit patches."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .audience import Audience
    from .remote_data import JsonMap

REMOTE_DATA_SOURCE = "remote-data"

# Window end used for cancelled schedules: any instant before "now".
ELAPSED_END = 0


def _empty_map() -> dict[str, object]:
    return {}


class InvalidScheduleError(ValueError):
    """Raised when a schedule window ends before it starts."""


def _check_window(start: int | None, end: int | None) -> None:
    if start is not None and end is not None and start > end:
        raise InvalidScheduleError(f"Schedule start {start} is after end {end}")


@dataclass(frozen=True, slots=True, kw_only=True)
class ScheduleInfo:
    """Everything needed to create a schedule from an in-app message definition."""

    message_id: str
    message: JsonMap = field(default_factory=_empty_map)
    audience: Audience | None = None
    triggers: tuple[JsonMap, ...] = ()
    start: int | None = None
    end: int | None = None
    priority: int = 0
    limit: int = 1
    source: str = REMOTE_DATA_SOURCE

    def __post_init__(self) -> None:
        if not self.message_id:
            raise ValueError("Schedule info requires a message id")
        if self.limit < 0:
            raise ValueError("Schedule limit must be non-negative")
        _check_window(self.start, self.end)


@dataclass(frozen=True, slots=True)
class Schedule:
    """A schedule as held by the scheduler, referenced by its ``id``."""

    id: str
    info: ScheduleInfo
    metadata: JsonMap = field(default_factory=_empty_map)

    @property
    def message_id(self) -> str:
        return self.info.message_id

    def is_active(self, now: int) -> bool:
        if self.info.start is not None and now < self.info.start:
            return False
        return not (self.info.end is not None and now > self.info.end)


class BoundKind(StrEnum):
    """How an edit treats one bound of the schedule window."""

    UNCHANGED = "unchanged"
    CLEARED = "cleared"
    ELAPSED = "elapsed"
    AT = "at"


@dataclass(frozen=True, slots=True)
class BoundEdit:
    """Tagged edit of a schedule window bound.

    ``UNCHANGED`` keeps the current value, ``CLEARED`` removes the bound,
    ``ELAPSED`` moves it into the past (only meaningful for the end bound,
    where it cancels the schedule) and ``AT`` sets an explicit instant.
    """

    kind: BoundKind = BoundKind.UNCHANGED
    value: int | None = None

    def __post_init__(self) -> None:
        if (self.kind is BoundKind.AT) != (self.value is not None):
            raise ValueError("Only AT bound edits carry a value")

    @classmethod
    def unchanged(cls) -> BoundEdit:
        return cls(BoundKind.UNCHANGED)

    @classmethod
    def cleared(cls) -> BoundEdit:
        return cls(BoundKind.CLEARED)

    @classmethod
    def elapsed(cls) -> BoundEdit:
        return cls(BoundKind.ELAPSED)

    @classmethod
    def at(cls, value: int) -> BoundEdit:
        return cls(BoundKind.AT, value)

    @property
    def is_unchanged(self) -> bool:
        return self.kind is BoundKind.UNCHANGED

    def apply(self, current: int | None) -> int | None:
        match self.kind:
            case BoundKind.UNCHANGED:
                return current
            case BoundKind.CLEARED:
                return None
            case BoundKind.ELAPSED:
                return ELAPSED_END
            case BoundKind.AT:
                return self.value


@dataclass(frozen=True, slots=True, kw_only=True)
class ScheduleEdits:
    """Partial patch applied to an existing schedule.

    ``None`` fields leave the schedule untouched; window bounds use ``BoundEdit``.
    """

    start: BoundEdit = field(default_factory=BoundEdit.unchanged)
    end: BoundEdit = field(default_factory=BoundEdit.unchanged)
    priority: int | None = None
    limit: int | None = None
    message: JsonMap | None = None
    metadata: JsonMap | None = None

    @classmethod
    def cancellation(cls, *, metadata: JsonMap | None = None) -> ScheduleEdits:
        # Clearing the start keeps the window valid once the end is in the past.
        return cls(start=BoundEdit.cleared(), end=BoundEdit.elapsed(), metadata=metadata)

    def with_metadata(self, metadata: Mapping[str, object]) -> ScheduleEdits:
        return replace(self, metadata=dict(metadata))

    def with_open_end(self) -> ScheduleEdits:
        """Return edits that clear the end bound unless they already set it."""

        if not self.end.is_unchanged:
            return self
        return replace(self, end=BoundEdit.cleared())

    def apply_to(self, info: ScheduleInfo) -> ScheduleInfo:
        start = self.start.apply(info.start)
        end = self.end.apply(info.end)
        _check_window(start, end)
        return replace(
            info,
            start=start,
            end=end,
            priority=info.priority if self.priority is None else self.priority,
            limit=info.limit if self.limit is None else self.limit,
            message=info.message if self.message is None else dict(self.message),
        )
