"""Application orchestration entry points."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from pushsync.adapters.remote_data import PollingRemoteDataFeed, RemoteDataApiClient
from pushsync.adapters.sqlalchemy import (
    SqlAlchemyPreferenceStore,
    SqlAlchemyScheduler,
    is_started,
    startup,
)
from pushsync.config import get_app_config, get_sync_config
from pushsync.domain.model import DeviceContext
from pushsync.domain.reconciliation import RemoteDataObserver
from pushsync.domain.timestamps import now_millis

if TYPE_CHECKING:
    from pushsync.config import AppConfig, SyncConfig
    from pushsync.domain.model import JsonMap, Schedule
    from pushsync.domain.ports import Scheduler, Store
    from pushsync.domain.reconciliation import PassOutcome

log = getLogger(__name__)

_WATCH_JOIN_INTERVAL_SECONDS = 0.5


def _ensure_started() -> None:
    if not is_started():
        startup()


def build_observer(
    store: Store | None = None,
    *,
    sync_config: SyncConfig | None = None,
) -> RemoteDataObserver:
    """Create an observer persisting its state in ``store`` (SQL by default)."""

    if store is None:
        _ensure_started()
        store = SqlAlchemyPreferenceStore()
    config = sync_config or get_sync_config()
    context = DeviceContext(channel_id=config.channel_id)
    return RemoteDataObserver(
        store,
        payload_type=config.payload_type,
        context_provider=lambda: context,
    )


def build_feed(
    store: Store,
    *,
    app_config: AppConfig | None = None,
    poll_interval_seconds: float | None = None,
    max_polls: int | None = None,
) -> PollingRemoteDataFeed:
    client = RemoteDataApiClient(config=app_config or get_app_config())
    interval = (
        poll_interval_seconds
        if poll_interval_seconds is not None
        else get_sync_config().poll_interval_seconds
    )
    return PollingRemoteDataFeed(
        client, store, poll_interval_seconds=interval, max_polls=max_polls
    )


@dataclass(slots=True)
class _Components:
    store: Store
    observer: RemoteDataObserver
    scheduler: Scheduler


def _default_components(
    *,
    store: Store | None,
    observer: RemoteDataObserver | None,
    scheduler: Scheduler | None,
) -> _Components:
    if store is None or scheduler is None:
        _ensure_started()
    resolved_store = store or SqlAlchemyPreferenceStore()
    return _Components(
        store=resolved_store,
        observer=observer or build_observer(resolved_store),
        scheduler=scheduler or SqlAlchemyScheduler(),
    )


def sync_in_app_messages(
    *,
    store: Store | None = None,
    observer: RemoteDataObserver | None = None,
    scheduler: Scheduler | None = None,
    feed: PollingRemoteDataFeed | None = None,
) -> PassOutcome | None:
    """Fetch remote data once and reconcile it on the calling thread.

    Returns ``None`` when the current snapshot was already applied.
    """

    components = _default_components(store=store, observer=observer, scheduler=scheduler)
    effective_feed = feed or build_feed(components.store)
    changed = effective_feed.refresh()
    log.info("Starting in-app message sync: remote data changed=%s", changed)

    payload = effective_feed.snapshot(components.observer.payload_type)
    outcome = components.observer.process_payload(payload, components.scheduler)
    if outcome is None:
        log.info("In-app messages already up to date (payload %s)", payload.timestamp)
    return outcome


def watch_in_app_messages(
    *,
    store: Store | None = None,
    observer: RemoteDataObserver | None = None,
    scheduler: Scheduler | None = None,
    feed: PollingRemoteDataFeed | None = None,
    poll_interval_seconds: float | None = None,
    max_polls: int | None = None,
    stop_event: threading.Event | None = None,
) -> None:
    """Subscribe to the feed and block until it ends or ``stop_event`` is set."""

    components = _default_components(store=store, observer=observer, scheduler=scheduler)
    effective_feed = feed or build_feed(
        components.store, poll_interval_seconds=poll_interval_seconds, max_polls=max_polls
    )
    stop = stop_event or threading.Event()

    log.info(
        "Watching remote data: interval=%ss, max_polls=%s",
        effective_feed.poll_interval_seconds,
        effective_feed.max_polls,
    )
    subscription = components.observer.subscribe(effective_feed, components.scheduler)
    try:
        while not subscription.join(_WATCH_JOIN_INTERVAL_SECONDS):
            if stop.is_set():
                break
    finally:
        effective_feed.close()
        components.observer.cancel()
    log.info("Stopped watching remote data")


def set_new_user_cutoff(
    time: int | None = None,
    *,
    store: Store | None = None,
    observer: RemoteDataObserver | None = None,
) -> int:
    """Set the new-user cutoff (defaults to now) and return it."""

    if observer is None:
        observer = build_observer(store)
    cutoff = now_millis() if time is None else time
    observer.set_new_user_cutoff(cutoff)
    return cutoff


@dataclass(slots=True, kw_only=True)
class StateSummary:
    cursor_timestamp: int
    cursor_metadata: JsonMap
    new_user_cutoff: int
    identity_map: dict[str, str] = field(default_factory=dict[str, str])
    schedules: list[Schedule] = field(default_factory=list["Schedule"])
    active_schedule_ids: set[str] = field(default_factory=set[str])


def describe_state(
    *,
    store: Store | None = None,
    observer: RemoteDataObserver | None = None,
    scheduler: SqlAlchemyScheduler | None = None,
    now: int | None = None,
) -> StateSummary:
    """Summarise the persisted cursor, identity map and schedules."""

    if store is None or scheduler is None:
        _ensure_started()
    effective_observer = observer or build_observer(store or SqlAlchemyPreferenceStore())
    effective_scheduler = scheduler or SqlAlchemyScheduler()
    cursor = effective_observer.cursor
    instant = now_millis() if now is None else now
    return StateSummary(
        cursor_timestamp=cursor.timestamp,
        cursor_metadata=cursor.metadata,
        new_user_cutoff=effective_observer.new_user_cutoff,
        identity_map=effective_observer.identity_map,
        schedules=effective_scheduler.list_schedules(),
        active_schedule_ids={s.id for s in effective_scheduler.active_schedules(instant)},
    )
