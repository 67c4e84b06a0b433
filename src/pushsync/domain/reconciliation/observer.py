"""Subscriber that keeps scheduled in-app messages in sync with remote data."""

from __future__ import annotations

import threading
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from pushsync.domain.audience_checks import check_audience_for_scheduling
from pushsync.domain.model import DeviceContext

from .eligibility import AudienceGate
from .engine import IN_APP_MESSAGES_PAYLOAD_TYPE, PassOutcome, ReconciliationPass
from .state import ObserverState
from .subscription import FeedSubscription

if TYPE_CHECKING:
    from collections.abc import Callable

    from pushsync.domain.model import ConvergenceCursor, RemoteDataPayload
    from pushsync.domain.ports import AudiencePredicate, RemoteDataFeed, Scheduler, Store

log = getLogger(__name__)


class ReconciliationListener(Protocol):
    def on_reconciled(self) -> None: ...


class RemoteDataObserver:
    """Subscribe to one remote-data payload type and reconcile every new snapshot.

    Payloads are applied one at a time in delivery order. A payload equal to the
    last applied one (same timestamp and metadata) is dropped. Listeners are
    called on the reconciling thread after each successful pass.
    """

    def __init__(
        self,
        store: Store,
        *,
        payload_type: str = IN_APP_MESSAGES_PAYLOAD_TYPE,
        audience_predicate: AudiencePredicate = check_audience_for_scheduling,
        context_provider: Callable[[], DeviceContext] = DeviceContext,
    ) -> None:
        self.payload_type = payload_type
        self._state = ObserverState(store)
        self._audience_predicate = audience_predicate
        self._context_provider = context_provider
        self._listeners: list[ReconciliationListener] = []
        self._listeners_lock = threading.Lock()
        self._subscription: FeedSubscription | None = None
        self._subscription_lock = threading.Lock()
        # Held for a whole pass so a pass from an older subscription, or from
        # process_payload on another thread, never overlaps the next one.
        self._pass_lock = threading.RLock()

    def add_listener(self, listener: ReconciliationListener) -> None:
        with self._listeners_lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: ReconciliationListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def subscribe(self, feed: RemoteDataFeed, scheduler: Scheduler) -> FeedSubscription:
        """Replace any current subscription with one on ``feed``.

        Cancelling the previous subscription also stops its feed iterator, so
        only the new one keeps polling.
        """

        with self._subscription_lock:
            if self._subscription is not None:
                self._subscription.cancel()
            subscription = FeedSubscription(
                lambda stop: feed.payloads_for_type(self.payload_type, stop=stop),
                lambda payload: self._handle_payload(payload, scheduler),
                name=self.payload_type,
            )
            self._subscription = subscription
        return subscription.start()

    def cancel(self) -> None:
        with self._subscription_lock:
            if self._subscription is not None:
                self._subscription.cancel()
                self._subscription = None

    @property
    def subscription(self) -> FeedSubscription | None:
        return self._subscription

    @property
    def cursor(self) -> ConvergenceCursor:
        return self._state.cursor()

    @property
    def identity_map(self) -> dict[str, str]:
        return self._state.identity_map()

    @property
    def new_user_cutoff(self) -> int:
        return self._state.new_user_cutoff

    def set_new_user_cutoff(self, time: int) -> None:
        """Set the cutoff in epoch milliseconds.

        Messages with a new-user audience condition are dropped when they were
        created after the cutoff.
        """

        self._state.new_user_cutoff = time

    def process_payload(
        self, payload: RemoteDataPayload, scheduler: Scheduler
    ) -> PassOutcome | None:
        """Reconcile ``payload`` on the calling thread.

        Returns ``None`` when the payload was already applied. Errors propagate
        and leave the persisted cursor and identity map untouched.
        """

        with self._pass_lock:
            cursor = self._state.cursor()
            if cursor.already_applied(payload):
                log.debug("Ignoring already applied %s payload %s", payload.type, payload.timestamp)
                return None

            gate = AudienceGate(
                predicate=self._audience_predicate,
                context_provider=self._context_provider,
                cutoff_provider=lambda: self._state.new_user_cutoff,
            )
            reconcile = ReconciliationPass(scheduler=scheduler, gate=gate)
            outcome = reconcile(payload, cursor=cursor, identity_map=self._state.identity_map())
            self._state.record_pass(outcome.identity_map, outcome.cursor)
            log.info(
                "Applied %s payload %s: created=%s, updated=%s, cancelled=%s, skipped=%s",
                payload.type,
                payload.timestamp,
                len(outcome.created),
                len(outcome.updated),
                len(outcome.cancelled),
                outcome.skipped,
            )
            self._notify_listeners()
            return outcome

    def _handle_payload(self, payload: RemoteDataPayload, scheduler: Scheduler) -> None:
        try:
            self.process_payload(payload, scheduler)
        except Exception:
            log.exception("Failed to process %s payload %s", payload.type, payload.timestamp)

    def _notify_listeners(self) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener.on_reconciled()
            except Exception:
                log.exception("Reconciliation listener %r failed", listener)
