"""Audience gating for messages seen for the first time."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from pushsync.domain.model import DeviceContext, ScheduleInfo
    from pushsync.domain.ports import AudiencePredicate


@dataclass(slots=True)
class AudienceGate:
    """Decide whether a new message may be scheduled on this device.

    Messages created at or before the new-user cutoff are checked as if the
    device were a new user. Nothing is cached: the cutoff and the device context
    are read again for every message.
    """

    predicate: AudiencePredicate
    context_provider: Callable[[], DeviceContext]
    cutoff_provider: Callable[[], int]

    def check_eligibility(self, info: ScheduleInfo, created_at: int) -> bool:
        allow_new_user = created_at <= self.cutoff_provider()
        return self.predicate(self.context_provider(), info.audience, allow_new_user)
