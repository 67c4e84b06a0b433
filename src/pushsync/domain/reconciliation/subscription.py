"""Feed subscription: a pump thread feeding one worker thread through a queue."""

from __future__ import annotations

import queue
import threading
from logging import getLogger
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from pushsync.domain.model import RemoteDataPayload

log = getLogger(__name__)

_STOP: Final = object()


class FeedSubscription:
    """Deliver payloads from a feed to ``handler``, one at a time, in feed order.

    ``source`` is called with the event that stops the feed and returns the
    payload iterable. The pump thread blocks on it and enqueues whatever it
    yields; the worker thread drains the queue and runs ``handler`` for each
    payload. ``cancel`` stops the feed, lets a running handler finish and drops
    everything queued after it.
    """

    def __init__(
        self,
        source: Callable[[threading.Event], Iterable[RemoteDataPayload]],
        handler: Callable[[RemoteDataPayload], None],
        *,
        name: str = "remote-data",
    ) -> None:
        self._feed_stop = threading.Event()
        self._payloads = source(self._feed_stop)
        self._handler = handler
        self._queue: queue.Queue[object] = queue.Queue()
        self._cancelled = threading.Event()
        self._pump = threading.Thread(target=self._pump_payloads, name=f"{name}-feed", daemon=True)
        self._worker = threading.Thread(target=self._drain, name=f"{name}-worker", daemon=True)

    def start(self) -> FeedSubscription:
        self._worker.start()
        self._pump.start()
        return self

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def is_worker_thread(self) -> bool:
        return threading.current_thread() is self._worker

    def cancel(self) -> None:
        if self._cancelled.is_set():
            return
        self._cancelled.set()
        self._feed_stop.set()
        self._queue.put(_STOP)

    def join(self, timeout: float | None = None) -> bool:
        """Wait for both threads to exit; ``True`` if they did within ``timeout``."""

        self._worker.join(timeout)
        self._pump.join(timeout)
        return not (self._worker.is_alive() or self._pump.is_alive())

    def _pump_payloads(self) -> None:
        try:
            for payload in self._payloads:
                if self._cancelled.is_set():
                    break
                self._queue.put(payload)
        except Exception:
            log.exception("Remote data feed failed")
        finally:
            self._queue.put(_STOP)

    def _drain(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP or self._cancelled.is_set():
                break
            self._handler(item)  # pyright: ignore[reportArgumentType]
