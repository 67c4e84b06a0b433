"""One reconciliation pass: converge scheduled messages to a remote-data snapshot.

The pass classifies every message in the payload against the convergence
cursor and the identity map:

1) malformed entries are logged and skipped
2) entries not updated since the cursor (under unchanged metadata) are skipped
3) unknown ids are resolved through the scheduler; ambiguous ones are skipped
4) messages created after the cursor without a schedule are gated and created
5) messages with a schedule are edited
6) schedules whose message left the payload are cancelled

The pass only computes the next cursor and identity map; persisting them is
left to the caller so nothing is recorded when a scheduler call fails.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from pushsync.domain.messages import (
    MalformedItemError,
    parse_remote_item,
    parse_schedule_edits,
    parse_schedule_info,
)
from pushsync.domain.model import (
    ConvergenceCursor,
    InvalidScheduleError,
    RemoteItem,
    ScheduleEdits,
    ScheduleInfo,
)
from pushsync.domain.ports import SchedulerError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pushsync.domain.model import JsonMap, RemoteDataPayload
    from pushsync.domain.ports import Scheduler

    from .eligibility import AudienceGate

log = getLogger(__name__)

IN_APP_MESSAGES_PAYLOAD_TYPE: Final[str] = "in_app_messages"
IN_APP_MESSAGES_KEY: Final[str] = "in_app_messages"


@dataclass(slots=True, kw_only=True)
class PassOutcome:
    """Result of one pass: the state to persist and what was done."""

    cursor: ConvergenceCursor
    identity_map: dict[str, str]
    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    cancelled: list[str] = field(default_factory=list)
    skipped: int = 0


@dataclass(slots=True)
class ReconciliationPass:
    scheduler: Scheduler
    gate: AudienceGate
    items_key: str = IN_APP_MESSAGES_KEY

    def __call__(
        self,
        payload: RemoteDataPayload,
        *,
        cursor: ConvergenceCursor,
        identity_map: Mapping[str, str],
    ) -> PassOutcome:
        identities = dict(identity_map)
        outcome = PassOutcome(
            cursor=ConvergenceCursor.from_payload(payload), identity_map=identities
        )
        metadata_unchanged = payload.metadata == cursor.metadata

        seen_ids: set[str] = set()
        new_schedules: list[ScheduleInfo] = []

        for entry in payload.entries(self.items_key):
            try:
                item = parse_remote_item(entry)
            except MalformedItemError as exc:
                log.error("Skipping in-app message: %s (%r)", exc, entry)  # noqa: TRY400
                outcome.skipped += 1
                continue

            if item.id in seen_ids:
                log.warning("Duplicate in-app message %s in payload, ignoring repeat", item.id)
                outcome.skipped += 1
                continue
            seen_ids.add(item.id)

            if metadata_unchanged and item.updated_at <= cursor.timestamp:
                continue

            if item.id not in identities and not self._resolve_identity(item.id, identities):
                outcome.skipped += 1
                continue

            schedule_id = identities.get(item.id)
            if schedule_id is not None:
                if self._update(item, schedule_id, payload.metadata):
                    outcome.updated.append(item.id)
                else:
                    outcome.skipped += 1
            elif item.created_at > cursor.timestamp:
                info = self._new_schedule(item)
                if info is not None:
                    new_schedules.append(info)

        if new_schedules:
            for schedule in self.scheduler.create_batch(new_schedules, payload.metadata):
                identities[schedule.message_id] = schedule.id
                outcome.created.append(schedule.message_id)
                log.debug("Scheduled in-app message %s as %s", schedule.message_id, schedule.id)

        for message_id in sorted(identities.keys() - seen_ids):
            schedule_id = identities.pop(message_id)
            self._cancel(message_id, schedule_id, payload.metadata)
            outcome.cancelled.append(message_id)

        return outcome

    def _resolve_identity(self, message_id: str, identities: dict[str, str]) -> bool:
        """Look up an existing schedule for ``message_id``; ``False`` if ambiguous."""

        schedules = self.scheduler.find_by_content_id(message_id)
        if len(schedules) > 1:
            log.warning(
                "Duplicate schedules for in-app message %s: %s",
                message_id,
                ", ".join(schedule.id for schedule in schedules),
            )
            return False
        if schedules:
            identities[message_id] = schedules[0].id
        return True

    def _new_schedule(self, item: RemoteItem) -> ScheduleInfo | None:
        try:
            info = parse_schedule_info(item)
        except MalformedItemError:
            log.exception("Failed to parse in-app message %s", item.id)
            return None
        if not self.gate.check_eligibility(info, item.created_at):
            log.debug("In-app message %s is not eligible for this device", item.id)
            return None
        log.debug("New in-app message: %s", item.id)
        return info

    def _update(self, item: RemoteItem, schedule_id: str, metadata: JsonMap) -> bool:
        try:
            # An untouched end would keep a previous cancellation in place.
            edits = parse_schedule_edits(item).with_metadata(metadata).with_open_end()
        except MalformedItemError:
            log.exception("Failed to parse in-app message edits %s", item.id)
            return False

        try:
            schedule = self.scheduler.edit_by_id(schedule_id, edits)
        except InvalidScheduleError:
            log.exception("Rejected edits for in-app message %s", item.id)
            return False

        if schedule is None:
            log.debug("Schedule %s for in-app message %s no longer exists", schedule_id, item.id)
        else:
            log.debug("Updated in-app message %s with edits %s", item.id, edits)
        return True

    def _cancel(self, message_id: str, schedule_id: str, metadata: JsonMap) -> None:
        edits = ScheduleEdits.cancellation(metadata=dict(metadata))
        try:
            self.scheduler.edit_by_id(schedule_id, edits)
        except SchedulerError:
            # The id is forgotten either way; a failed cancel is not retried.
            log.warning(
                "Failed to cancel schedule %s for removed in-app message %s",
                schedule_id,
                message_id,
                exc_info=True,
            )
            return
        log.debug("Cancelled schedule %s for removed in-app message %s", schedule_id, message_id)
