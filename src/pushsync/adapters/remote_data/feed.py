"""Remote-data feed that polls the API and retains the latest payloads."""

from __future__ import annotations

import threading
from logging import getLogger
from typing import TYPE_CHECKING, Final

import httpx

from pushsync.domain.model import RemoteDataPayload

from .client import RemoteDataAPIError
from .translator import payload_from_json, payload_to_json

if TYPE_CHECKING:
    from collections.abc import Iterator

    from pushsync.domain.ports import Store

    from .client import RemoteDataApiClient

log = getLogger(__name__)

RETAINED_PAYLOADS_KEY: Final[str] = "pushsync.remotedata.PAYLOADS"
LAST_MODIFIED_KEY: Final[str] = "pushsync.remotedata.LAST_MODIFIED"
DEFAULT_POLL_INTERVAL_SECONDS: Final[float] = 300.0


class PollingRemoteDataFeed:
    """``RemoteDataFeed`` backed by ``RemoteDataApiClient``.

    Every iterator starts with the retained payload of its type, if any, and
    then polls. A refresh that changed the remote data yields the new payload
    of the type, or an empty one when the refresh no longer carries it.
    Retained payloads and ``Last-Modified`` live in the store, so a restarted
    process sees the same history.
    """

    def __init__(
        self,
        client: RemoteDataApiClient,
        store: Store,
        *,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        max_polls: int | None = None,
    ) -> None:
        if poll_interval_seconds < 0:
            raise ValueError("poll_interval_seconds must be non-negative")
        self._client = client
        self._store = store
        self.poll_interval_seconds = poll_interval_seconds
        self.max_polls = max_polls
        self._closed = threading.Event()
        self._refresh_lock = threading.Lock()
        self._generation = 0
        self._stops: set[threading.Event] = set()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        """Stop every open iterator; they finish without another request."""

        with self._refresh_lock:
            self._closed.set()
            stops = list(self._stops)
        for stop in stops:
            stop.set()

    def retained_payloads(self) -> list[RemoteDataPayload]:
        raw = self._store.get_json(RETAINED_PAYLOADS_KEY, [])
        if not isinstance(raw, list):
            return []
        return [payload for payload in map(payload_from_json, raw) if payload is not None]

    def retained_payload(self, payload_type: str) -> RemoteDataPayload | None:
        for payload in self.retained_payloads():
            if payload.type == payload_type:
                return payload
        return None

    def refresh(self) -> bool:
        """Fetch once; ``True`` when new payloads were retained."""

        with self._refresh_lock:
            last_modified = self._store.get_json(LAST_MODIFIED_KEY)
            result = self._client.fetch(last_modified if isinstance(last_modified, str) else None)
            if result.not_modified:
                return False
            self._store.put_many(
                {
                    RETAINED_PAYLOADS_KEY: [payload_to_json(p) for p in result.payloads],
                    LAST_MODIFIED_KEY: result.last_modified,
                }
            )
            self._generation += 1
        log.info("Refreshed remote data: %s payloads", len(result.payloads))
        return True

    def snapshot(self, payload_type: str) -> RemoteDataPayload:
        """Retained payload of ``payload_type``, or an empty one with the request metadata."""

        return self.retained_payload(payload_type) or RemoteDataPayload.empty(
            payload_type, metadata=self._client.metadata()
        )

    def payloads_for_type(
        self, payload_type: str, *, stop: threading.Event | None = None
    ) -> Iterator[RemoteDataPayload]:
        """Yield the retained payload, then a snapshot after every refresh.

        Refreshes made through any iterator, or through ``refresh``, count, so
        several iterators on one feed all see a change whoever fetched it. The
        iterator ends once ``stop`` is set or the feed is closed.
        """

        stopped = stop if stop is not None else threading.Event()
        with self._refresh_lock:
            self._stops.add(stopped)
            seen = self._generation
            retained = self.retained_payload(payload_type)

        try:
            if retained is not None:
                yield retained

            polls = 0
            while not (stopped.is_set() or self._closed.is_set()):
                self._poll()
                with self._refresh_lock:
                    generation = self._generation
                    latest = self.snapshot(payload_type) if generation != seen else None
                if latest is not None:
                    seen = generation
                    yield latest
                polls += 1
                if self.max_polls is not None and polls >= self.max_polls:
                    return
                if stopped.wait(self.poll_interval_seconds):
                    return
        finally:
            with self._refresh_lock:
                self._stops.discard(stopped)

    def _poll(self) -> None:
        try:
            self.refresh()
        except (RemoteDataAPIError, httpx.HTTPError):
            log.warning("Remote data refresh failed", exc_info=True)
