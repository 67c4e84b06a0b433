"""Port for the remote-data feed."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import threading
    from collections.abc import Iterator

    from pushsync.domain.model import RemoteDataPayload


@runtime_checkable
class RemoteDataFeed(Protocol):
    """Lazy, possibly infinite and restartable sequence of payloads per type.

    Delivery is neither gap-free nor duplicate-free; consumers guard against
    re-delivery themselves. An iterator ends soon after ``stop`` is set, without
    another request to the remote source.
    """

    def payloads_for_type(
        self, payload_type: str, *, stop: threading.Event | None = None
    ) -> Iterator[RemoteDataPayload]: ...
