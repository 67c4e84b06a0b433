"""Reusable fakes and builders for reconciliation tests."""

from __future__ import annotations

import copy
import itertools
import threading
from typing import TYPE_CHECKING

from pushsync.adapters.remote_data import RemoteDataFetchResult
from pushsync.domain.model import RemoteDataPayload, Schedule
from pushsync.domain.ports import SchedulerError
from pushsync.domain.reconciliation import IN_APP_MESSAGES_KEY, IN_APP_MESSAGES_PAYLOAD_TYPE

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence

    from pushsync.domain.model import JsonMap, ScheduleEdits, ScheduleInfo
    from pushsync.domain.ports import JsonValue


class MemoryStore:
    """In-memory ``Store`` that records every write batch."""

    def __init__(self, values: Mapping[str, JsonValue] | None = None) -> None:
        self.values: dict[str, JsonValue] = dict(values or {})
        self.writes: list[dict[str, JsonValue]] = []
        self.fail_writes = False

    def get_long(self, key: str, default: int) -> int:
        value = self.values.get(key)
        if isinstance(value, bool) or not isinstance(value, int):
            return default
        return value

    def put_long(self, key: str, value: int) -> None:
        self.put_many({key: value})

    def get_json(self, key: str, default: JsonValue = None) -> JsonValue:
        if key not in self.values or self.values[key] is None:
            return default
        return copy.deepcopy(self.values[key])

    def put_json(self, key: str, value: JsonValue) -> None:
        self.put_many({key: value})

    def put_many(self, values: Mapping[str, JsonValue]) -> None:
        if self.fail_writes:
            raise OSError("store unavailable")
        batch = {key: copy.deepcopy(value) for key, value in values.items()}
        self.writes.append(batch)
        self.values.update(batch)


class FakeScheduler:
    """In-memory ``Scheduler`` with a call log and injectable failures."""

    def __init__(self) -> None:
        self.schedules: dict[str, Schedule] = {}
        self.calls: list[tuple[str, object]] = []
        self.fail_edits_for: set[str] = set()
        self.fail_create = False
        self.on_call: Callable[[str], None] | None = None
        self._ids = itertools.count(1)

    def add(self, info: ScheduleInfo, metadata: JsonMap | None = None) -> Schedule:
        schedule = Schedule(id=f"schedule-{next(self._ids)}", info=info, metadata=dict(metadata or {}))
        self.schedules[schedule.id] = schedule
        return schedule

    def find_by_content_id(self, message_id: str) -> list[Schedule]:
        self._record("find", message_id)
        return [s for s in self.schedules.values() if s.message_id == message_id]

    def create_batch(self, infos: Sequence[ScheduleInfo], metadata: JsonMap) -> list[Schedule]:
        self._record("create", [info.message_id for info in infos])
        if self.fail_create:
            raise SchedulerError("create failed")
        return [self.add(info, metadata) for info in infos]

    def edit_by_id(self, schedule_id: str, edits: ScheduleEdits) -> Schedule | None:
        self._record("edit", (schedule_id, edits))
        if schedule_id in self.fail_edits_for:
            raise SchedulerError(f"edit of {schedule_id} failed")
        current = self.schedules.get(schedule_id)
        if current is None:
            return None
        metadata = current.metadata if edits.metadata is None else dict(edits.metadata)
        edited = Schedule(id=schedule_id, info=edits.apply_to(current.info), metadata=metadata)
        self.schedules[schedule_id] = edited
        return edited

    def calls_named(self, name: str) -> list[object]:
        return [args for call, args in self.calls if call == name]

    def _record(self, name: str, args: object) -> None:
        self.calls.append((name, args))
        if self.on_call is not None:
            self.on_call(name)


class ListFeed:
    """``RemoteDataFeed`` replaying fixed payloads, optionally held open afterwards."""

    def __init__(self, payloads: Iterable[RemoteDataPayload], *, hold_open: bool = False) -> None:
        self.payloads = list(payloads)
        self.hold_open = hold_open
        self.release = threading.Event()
        self.requested: list[str] = []
        self.poll_interval_seconds = 0.0
        self.max_polls: int | None = None

    def payloads_for_type(
        self, payload_type: str, *, stop: threading.Event | None = None
    ) -> Iterator[RemoteDataPayload]:
        self.requested.append(payload_type)
        for payload in self.payloads:
            if payload.type == payload_type:
                yield payload
        if self.hold_open:
            while not self.release.wait(0.01):
                if stop is not None and stop.is_set():
                    return

    def close(self) -> None:
        self.release.set()


class RecordingListener:
    def __init__(self, name: str = "listener", log: list[str] | None = None) -> None:
        self.name = name
        self.log = log if log is not None else []
        self.count = 0
        self.called = threading.Event()

    def on_reconciled(self) -> None:
        self.count += 1
        self.log.append(self.name)
        self.called.set()


def make_message(
    message_id: str,
    *,
    created: int | str = 50,
    updated: int | str | None = None,
    start: int | str | None = None,
    end: int | str | None = None,
    priority: int | None = None,
    limit: int | None = None,
    new_user: bool | None = None,
    test_devices: Sequence[str] | None = None,
) -> dict[str, object]:
    """Build one raw in-app message entry as remote data carries it."""

    message: dict[str, object] = {
        "message_id": message_id,
        "display_type": "banner",
        "display": {"body": {"text": f"Hello from {message_id}"}},
    }
    if new_user is not None or test_devices is not None:
        audience: dict[str, object] = {}
        if new_user is not None:
            audience["new_user"] = new_user
        if test_devices is not None:
            audience["test_devices"] = list(test_devices)
        message["audience"] = audience

    entry: dict[str, object] = {
        "created": created,
        "last_updated": created if updated is None else updated,
        "message": message,
        "triggers": [{"type": "app_init", "goal": 1}],
    }
    for key, value in (("start", start), ("end", end), ("priority", priority), ("limit", limit)):
        if value is not None:
            entry[key] = value
    return entry


def make_payload(
    messages: Iterable[object] = (),
    *,
    timestamp: int = 100,
    metadata: JsonMap | None = None,
    payload_type: str = IN_APP_MESSAGES_PAYLOAD_TYPE,
) -> RemoteDataPayload:
    return RemoteDataPayload(
        type=payload_type,
        timestamp=timestamp,
        data={IN_APP_MESSAGES_KEY: list(messages)},
        metadata=dict(metadata if metadata is not None else {"v": 1}),
    )


class ScriptedRemoteDataClient:
    """Stands in for ``RemoteDataApiClient``; returns queued results, then 304s."""

    def __init__(
        self, *results: RemoteDataFetchResult | Exception, metadata: JsonMap | None = None
    ) -> None:
        self.results = list(results)
        self.requests: list[str | None] = []
        self._metadata = dict(metadata or {"url": "https://example.test/api"})

    def fetch(self, last_modified: str | None = None) -> RemoteDataFetchResult:
        self.requests.append(last_modified)
        result = self.results.pop(0) if self.results else self.not_modified()
        if isinstance(result, Exception):
            raise result
        return result

    def metadata(self) -> dict[str, object]:
        return dict(self._metadata)

    def ok(
        self, *payloads: RemoteDataPayload, last_modified: str | None = None
    ) -> RemoteDataFetchResult:
        return RemoteDataFetchResult(
            status=200, metadata=self.metadata(), payloads=payloads, last_modified=last_modified
        )

    def not_modified(self) -> RemoteDataFetchResult:
        return RemoteDataFetchResult(status=304, metadata=self.metadata())
