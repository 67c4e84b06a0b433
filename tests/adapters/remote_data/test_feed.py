from __future__ import annotations

import threading

import httpx
import pytest

from pushsync.adapters.remote_data import (
    LAST_MODIFIED_KEY,
    PollingRemoteDataFeed,
    RemoteDataAPIError,
)
from pushsync.domain.model import RemoteDataPayload
from pushsync.domain.reconciliation import RemoteDataObserver
from tests.support.fakes import (
    FakeScheduler,
    MemoryStore,
    RecordingListener,
    ScriptedRemoteDataClient,
    make_message,
    make_payload,
)

METADATA = {"url": "https://example.test/api"}
JOIN_TIMEOUT = 5.0


def _payload(payload_type: str, timestamp: int, **data: object) -> RemoteDataPayload:
    return RemoteDataPayload(type=payload_type, timestamp=timestamp, data=data, metadata=METADATA)


def _feed(
    client: ScriptedRemoteDataClient, store: MemoryStore, *, max_polls: int | None = None
) -> PollingRemoteDataFeed:
    return PollingRemoteDataFeed(
        client,  # type: ignore[arg-type]
        store,
        poll_interval_seconds=0,
        max_polls=max_polls,
    )


def test_changed_remote_data_is_yielded() -> None:
    client = ScriptedRemoteDataClient(metadata=METADATA)
    client.results = [
        client.ok(_payload("in_app_messages", 100, items=[1]), last_modified="lm-1"),
        client.not_modified(),
        client.ok(_payload("in_app_messages", 200, items=[2]), last_modified="lm-2"),
    ]
    store = MemoryStore()

    payloads = list(_feed(client, store, max_polls=3).payloads_for_type("in_app_messages"))

    assert [payload.timestamp for payload in payloads] == [100, 200]
    assert client.requests == [None, "lm-1", "lm-1"]
    assert store.values[LAST_MODIFIED_KEY] == "lm-2"


def test_retained_payload_is_delivered_first() -> None:
    store = MemoryStore()
    first_client = ScriptedRemoteDataClient(metadata=METADATA)
    first_client.results = [first_client.ok(_payload("in_app_messages", 100))]
    _feed(first_client, store).refresh()

    restarted = _feed(ScriptedRemoteDataClient(metadata=METADATA), store, max_polls=1)
    payloads = list(restarted.payloads_for_type("in_app_messages"))

    assert [payload.timestamp for payload in payloads] == [100]
    assert payloads[0].metadata == METADATA


def test_missing_type_yields_empty_snapshot() -> None:
    client = ScriptedRemoteDataClient(metadata=METADATA)
    client.results = [client.ok(_payload("other", 100))]

    payloads = list(_feed(client, MemoryStore(), max_polls=1).payloads_for_type("in_app_messages"))

    assert len(payloads) == 1
    assert payloads[0].type == "in_app_messages"
    assert payloads[0].data == {}
    assert payloads[0].metadata == METADATA


def test_failed_refresh_is_logged_and_polling_continues(
    caplog: pytest.LogCaptureFixture,
) -> None:
    client = ScriptedRemoteDataClient(metadata=METADATA)
    client.results = [
        RemoteDataAPIError("boom", status=500),
        httpx.ConnectError("offline"),
        client.ok(_payload("in_app_messages", 100)),
    ]

    payloads = list(_feed(client, MemoryStore(), max_polls=3).payloads_for_type("in_app_messages"))

    assert [payload.timestamp for payload in payloads] == [100]
    assert caplog.text.count("Remote data refresh failed") == 2


def test_close_stops_iteration() -> None:
    client = ScriptedRemoteDataClient(metadata=METADATA)
    client.results = [client.ok(_payload("in_app_messages", 100))]
    feed = _feed(client, MemoryStore())
    iterator = feed.payloads_for_type("in_app_messages")

    assert next(iterator).timestamp == 100
    feed.close()

    assert list(iterator) == []
    assert feed.closed


def test_refresh_reports_changes() -> None:
    client = ScriptedRemoteDataClient(metadata=METADATA)
    client.results = [client.ok(_payload("a", 1))]
    feed = _feed(client, MemoryStore())

    assert feed.refresh() is True
    assert feed.refresh() is False
    assert [payload.type for payload in feed.retained_payloads()] == ["a"]


def test_negative_interval_is_rejected() -> None:
    with pytest.raises(ValueError, match="non-negative"):
        PollingRemoteDataFeed(
            ScriptedRemoteDataClient(),  # type: ignore[arg-type]
            MemoryStore(),
            poll_interval_seconds=-1,
        )


def test_stop_event_ends_iteration_without_another_request() -> None:
    client = ScriptedRemoteDataClient(metadata=METADATA)
    client.results = [client.ok(_payload("in_app_messages", 100))]
    feed = _feed(client, MemoryStore())
    stop = threading.Event()
    iterator = feed.payloads_for_type("in_app_messages", stop=stop)

    assert next(iterator).timestamp == 100
    stop.set()

    assert list(iterator) == []
    assert client.requests == [None]
    assert not feed.closed


def test_resubscribing_hands_next_change_to_new_subscription() -> None:
    client = ScriptedRemoteDataClient(metadata=METADATA)
    store = MemoryStore()
    feed = PollingRemoteDataFeed(
        client,  # type: ignore[arg-type]
        store,
        poll_interval_seconds=0.01,
    )
    observer = RemoteDataObserver(store)
    listener = RecordingListener()
    observer.add_listener(listener)
    scheduler = FakeScheduler()

    first = observer.subscribe(feed, scheduler)
    second = observer.subscribe(feed, scheduler)
    assert first.join(JOIN_TIMEOUT)
    client.results.append(client.ok(make_payload([make_message("a")]), last_modified="lm-1"))

    assert listener.called.wait(JOIN_TIMEOUT)
    assert set(observer.identity_map) == {"a"}
    assert scheduler.calls_named("create") == [["a"]]

    observer.cancel()
    assert second.join(JOIN_TIMEOUT)
    feed.close()
