"""Reconciliation of scheduled in-app messages against remote data.

``RemoteDataObserver`` owns the subscription and the persisted state;
``ReconciliationPass`` holds the classification algorithm for one payload.
"""

from __future__ import annotations

from .eligibility import AudienceGate
from .engine import (
    IN_APP_MESSAGES_KEY,
    IN_APP_MESSAGES_PAYLOAD_TYPE,
    PassOutcome,
    ReconciliationPass,
)
from .observer import ReconciliationListener, RemoteDataObserver
from .state import ObserverState
from .subscription import FeedSubscription

__all__ = [
    "IN_APP_MESSAGES_KEY",
    "IN_APP_MESSAGES_PAYLOAD_TYPE",
    "AudienceGate",
    "FeedSubscription",
    "ObserverState",
    "PassOutcome",
    "ReconciliationListener",
    "ReconciliationPass",
    "RemoteDataObserver",
]
