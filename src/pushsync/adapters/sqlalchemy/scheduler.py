"""Scheduler backed by the ``schedules`` table."""

from __future__ import annotations

import uuid
from logging import getLogger
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, or_, select, update
from sqlalchemy.exc import SQLAlchemyError

from pushsync.adapters.sqlalchemy.mappings import schedule_table
from pushsync.domain.model import Audience, Schedule, ScheduleInfo
from pushsync.domain.ports import SchedulerError
from pushsync.domain.timestamps import now_millis

from .session import session_factory as default_session_factory

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from sqlalchemy import Row
    from sqlalchemy.orm import Session, sessionmaker

    from pushsync.domain.model import JsonMap, ScheduleEdits

log = getLogger(__name__)


class SqlAlchemyScheduler:
    """``Scheduler`` implementation persisting schedules in SQL.

    Database failures in the port methods surface as ``SchedulerError``.
    ``edit_by_id`` raises ``InvalidScheduleError`` when the edits would leave the
    window ending before it starts; nothing is written in that case.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        *,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self.session_factory = session_factory or default_session_factory()
        self._clock = clock

    def find_by_content_id(self, message_id: str) -> list[Schedule]:
        stmt = (
            select(schedule_table)
            .where(schedule_table.c.message_id == message_id)
            .order_by(schedule_table.c.created_at, schedule_table.c.id)
        )
        try:
            with self.session_factory() as session:
                return [_schedule_from_row(row) for row in session.execute(stmt)]
        except SQLAlchemyError as exc:
            raise SchedulerError(f"Failed to look up schedules for {message_id}") from exc

    def create_batch(self, infos: Sequence[ScheduleInfo], metadata: JsonMap) -> list[Schedule]:
        if not infos:
            return []
        now = self._clock()
        schedules = [
            Schedule(id=str(uuid.uuid4()), info=info, metadata=dict(metadata)) for info in infos
        ]
        try:
            with self.session_factory.begin() as session:
                session.execute(
                    insert(schedule_table),
                    [_row_from_schedule(schedule, created_at=now) for schedule in schedules],
                )
        except SQLAlchemyError as exc:
            raise SchedulerError(f"Failed to create {len(schedules)} schedules") from exc
        log.debug("Created %s schedules", len(schedules))
        return schedules

    def edit_by_id(self, schedule_id: str, edits: ScheduleEdits) -> Schedule | None:
        try:
            return self._edit(schedule_id, edits)
        except SQLAlchemyError as exc:
            raise SchedulerError(f"Failed to edit schedule {schedule_id}") from exc

    def get(self, schedule_id: str) -> Schedule | None:
        with self.session_factory() as session:
            row = session.execute(
                select(schedule_table).where(schedule_table.c.id == schedule_id)
            ).one_or_none()
        return None if row is None else _schedule_from_row(row)

    def list_schedules(self) -> list[Schedule]:
        stmt = select(schedule_table).order_by(schedule_table.c.created_at, schedule_table.c.id)
        with self.session_factory() as session:
            return [_schedule_from_row(row) for row in session.execute(stmt)]

    def active_schedules(self, now: int | None = None) -> list[Schedule]:
        instant = self._clock() if now is None else now
        stmt = (
            select(schedule_table)
            .where(or_(schedule_table.c.start.is_(None), schedule_table.c.start <= instant))
            .where(or_(schedule_table.c.end.is_(None), schedule_table.c.end >= instant))
            .order_by(schedule_table.c.priority, schedule_table.c.created_at)
        )
        with self.session_factory() as session:
            return [_schedule_from_row(row) for row in session.execute(stmt)]

    def _edit(self, schedule_id: str, edits: ScheduleEdits) -> Schedule | None:
        with self.session_factory.begin() as session:
            row = session.execute(
                select(schedule_table).where(schedule_table.c.id == schedule_id)
            ).one_or_none()
            if row is None:
                return None
            current = _schedule_from_row(row)
            info = edits.apply_to(current.info)
            metadata = current.metadata if edits.metadata is None else dict(edits.metadata)
            edited = Schedule(id=current.id, info=info, metadata=metadata)
            values = _row_from_schedule(edited, created_at=row.created_at)
            values["updated_at"] = self._clock()
            session.execute(
                update(schedule_table).where(schedule_table.c.id == schedule_id).values(**values)
            )
        return edited


def _audience_to_json(audience: Audience | None) -> dict[str, Any] | None:
    if audience is None:
        return None
    return {"new_user": audience.new_user, "test_devices": list(audience.test_devices)}


def _audience_from_json(value: Mapping[str, Any] | None) -> Audience | None:
    if value is None:
        return None
    return Audience(
        new_user=value.get("new_user"),
        test_devices=tuple(value.get("test_devices") or ()),
    )


def _row_from_schedule(schedule: Schedule, *, created_at: int) -> dict[str, Any]:
    info = schedule.info
    return {
        "id": schedule.id,
        "message_id": info.message_id,
        "source": info.source,
        "message": dict(info.message),
        "audience": _audience_to_json(info.audience),
        "triggers": [dict(trigger) for trigger in info.triggers],
        "start": info.start,
        "end": info.end,
        "priority": info.priority,
        "limit": info.limit,
        "metadata": dict(schedule.metadata),
        "created_at": created_at,
        "updated_at": created_at,
    }


def _schedule_from_row(row: Row[Any]) -> Schedule:
    mapping = row._mapping  # noqa: SLF001
    info = ScheduleInfo(
        message_id=mapping["message_id"],
        message=mapping["message"] or {},
        audience=_audience_from_json(mapping["audience"]),
        triggers=tuple(mapping["triggers"] or ()),
        start=mapping["start"],
        end=mapping["end"],
        priority=mapping["priority"],
        limit=mapping["limit"],
        source=mapping["source"],
    )
    return Schedule(id=mapping["id"], info=info, metadata=mapping["metadata"] or {})
