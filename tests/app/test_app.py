from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import pytest

from pushsync.adapters.remote_data import PollingRemoteDataFeed
from pushsync.adapters.sqlalchemy import SqlAlchemyPreferenceStore, SqlAlchemyScheduler
from pushsync.app import (
    build_observer,
    describe_state,
    set_new_user_cutoff,
    sync_in_app_messages,
    watch_in_app_messages,
)
from pushsync.config import SyncConfig
from tests.support.fakes import (
    FakeScheduler,
    ListFeed,
    MemoryStore,
    ScriptedRemoteDataClient,
    make_message,
    make_payload,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


def _feed(client: ScriptedRemoteDataClient, store: object) -> PollingRemoteDataFeed:
    return PollingRemoteDataFeed(
        client,  # type: ignore[arg-type]
        store,  # type: ignore[arg-type]
        poll_interval_seconds=0,
        max_polls=2,
    )


@pytest.mark.usefixtures("started_adapter")
def test_sync_in_app_messages_end_to_end() -> None:
    store = SqlAlchemyPreferenceStore()
    scheduler = SqlAlchemyScheduler()
    client = ScriptedRemoteDataClient()
    client.results = [
        client.ok(make_payload([make_message("a"), make_message("b")], timestamp=100)),
        client.ok(make_payload([make_message("b")], timestamp=200)),
    ]
    observer = build_observer(store, sync_config=SyncConfig())
    feed = _feed(client, store)

    first = sync_in_app_messages(store=store, observer=observer, scheduler=scheduler, feed=feed)
    second = sync_in_app_messages(store=store, observer=observer, scheduler=scheduler, feed=feed)
    third = sync_in_app_messages(store=store, observer=observer, scheduler=scheduler, feed=feed)

    assert first is not None
    assert sorted(first.created) == ["a", "b"]
    assert second is not None
    assert second.cancelled == ["a"]
    assert third is None

    state = describe_state(store=store, observer=observer, scheduler=scheduler, now=1_000)
    assert state.cursor_timestamp == 200
    assert set(state.identity_map) == {"b"}
    assert len(state.schedules) == 2
    assert state.active_schedule_ids == {state.identity_map["b"]}


def test_watch_runs_until_feed_ends() -> None:
    store = MemoryStore()
    scheduler = FakeScheduler()
    observer = build_observer(store, sync_config=SyncConfig())
    feed = ListFeed(
        [
            make_payload([make_message("a")], timestamp=100),
            make_payload([make_message("a"), make_message("b")], timestamp=200),
        ]
    )

    watch_in_app_messages(
        store=store,
        observer=observer,
        scheduler=scheduler,
        feed=feed,  # type: ignore[arg-type]
    )

    assert set(observer.identity_map) == {"a", "b"}
    assert observer.subscription is None


def test_watch_stops_on_event() -> None:
    store = MemoryStore()
    observer = build_observer(store, sync_config=SyncConfig())
    feed = ListFeed([make_payload([])], hold_open=True)
    stop = threading.Event()
    stop.set()

    watch_in_app_messages(
        store=store,
        observer=observer,
        scheduler=FakeScheduler(),
        feed=feed,  # type: ignore[arg-type]
        stop_event=stop,
    )

    assert observer.subscription is None
    feed.release.set()


def test_build_observer_uses_channel_id() -> None:
    store = MemoryStore()
    scheduler = FakeScheduler()
    observer = build_observer(store, sync_config=SyncConfig(channel_id="me"))

    observer.process_payload(
        make_payload(
            [make_message("a", test_devices=["me"]), make_message("b", test_devices=["x"])]
        ),
        scheduler,
    )

    assert set(observer.identity_map) == {"a"}


def test_set_new_user_cutoff() -> None:
    store = MemoryStore()
    observer = build_observer(store, sync_config=SyncConfig())

    assert set_new_user_cutoff(500, observer=observer) == 500
    assert observer.new_user_cutoff == 500

    now = set_new_user_cutoff(observer=observer)
    assert now > 500
    assert build_observer(store, sync_config=SyncConfig()).new_user_cutoff == now
