"""Port for audience evaluation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from pushsync.domain.model import Audience, DeviceContext


class AudiencePredicate(Protocol):
    def __call__(
        self,
        context: DeviceContext,
        audience: Audience | None,
        allow_new_user: bool,  # noqa: FBT001
    ) -> bool: ...
