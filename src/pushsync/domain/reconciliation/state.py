"""Persisted bookkeeping of the remote-data observer.

Three values outlive a reconciliation pass: the convergence cursor (timestamp
and metadata of the last fully applied payload), the identity map from message
id to schedule id, and the new-user cutoff. The first two are only written
together at the end of a successful pass.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, cast

from pushsync.domain.model import ConvergenceCursor

if TYPE_CHECKING:
    from pushsync.domain.ports import JsonValue, Store

KEY_PREFIX: Final[str] = "pushsync.iam.data"
LAST_PAYLOAD_TIMESTAMP_KEY: Final[str] = f"{KEY_PREFIX}.LAST_PAYLOAD_TIMESTAMP"
LAST_PAYLOAD_METADATA_KEY: Final[str] = f"{KEY_PREFIX}.LAST_PAYLOAD_METADATA"
SCHEDULED_MESSAGES_KEY: Final[str] = f"{KEY_PREFIX}.SCHEDULED_MESSAGES"
NEW_USER_CUTOFF_TIME_KEY: Final[str] = f"{KEY_PREFIX}.NEW_USER_TIME"

NO_CUTOFF: Final[int] = -1


@dataclass(slots=True)
class ObserverState:
    store: Store

    def cursor(self) -> ConvergenceCursor:
        timestamp = self.store.get_long(LAST_PAYLOAD_TIMESTAMP_KEY, -1)
        metadata = self.store.get_json(LAST_PAYLOAD_METADATA_KEY)
        if not isinstance(metadata, Mapping):
            return ConvergenceCursor(timestamp=timestamp)
        return ConvergenceCursor(timestamp=timestamp, metadata=dict(metadata))

    def identity_map(self) -> dict[str, str]:
        stored = self.store.get_json(SCHEDULED_MESSAGES_KEY)
        if not isinstance(stored, Mapping):
            return {}
        # Entries written by older versions may hold non-string ids; drop them.
        return {
            message_id: schedule_id
            for message_id, schedule_id in stored.items()
            if isinstance(schedule_id, str)
        }

    @property
    def new_user_cutoff(self) -> int:
        return self.store.get_long(NEW_USER_CUTOFF_TIME_KEY, NO_CUTOFF)

    @new_user_cutoff.setter
    def new_user_cutoff(self, value: int) -> None:
        self.store.put_long(NEW_USER_CUTOFF_TIME_KEY, value)

    def record_pass(self, identity_map: Mapping[str, str], cursor: ConvergenceCursor) -> None:
        """Persist the identity map and then the cursor in one store transaction."""

        self.store.put_many(
            {
                SCHEDULED_MESSAGES_KEY: dict(identity_map),
                LAST_PAYLOAD_TIMESTAMP_KEY: cursor.timestamp,
                LAST_PAYLOAD_METADATA_KEY: cast("JsonValue", dict(cursor.metadata)),
            }
        )
