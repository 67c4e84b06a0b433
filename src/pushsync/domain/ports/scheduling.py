"""Port for the store that owns scheduled in-app messages."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pushsync.domain.model import JsonMap, Schedule, ScheduleEdits, ScheduleInfo


class SchedulerError(RuntimeError):
    """Raised when the scheduler cannot complete an operation."""


@runtime_checkable
class Scheduler(Protocol):
    """Create, look up and edit schedules. There is no delete and no upsert."""

    def find_by_content_id(self, message_id: str) -> list[Schedule]:
        """Return every schedule whose message id equals ``message_id``."""
        ...

    def create_batch(self, infos: Sequence[ScheduleInfo], metadata: JsonMap) -> list[Schedule]: ...

    def edit_by_id(self, schedule_id: str, edits: ScheduleEdits) -> Schedule | None:
        """Apply ``edits`` and return the updated schedule, or ``None`` if it is unknown."""
        ...
