"""Default audience predicate used when scheduling in-app messages."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pushsync.domain.model import Audience, DeviceContext
    from pushsync.domain.ports import AudiencePredicate


def check_audience_for_scheduling(
    context: DeviceContext,
    audience: Audience | None,
    allow_new_user: bool,  # noqa: FBT001
) -> bool:
    """Return whether a message with ``audience`` may be scheduled on this device.

    Only conditions that cannot change after scheduling are checked here. A
    ``new_user`` condition must agree with ``allow_new_user``, and a test-device
    list must name this device's channel.
    """

    if audience is None:
        return True

    if audience.new_user is not None and audience.new_user != allow_new_user:
        return False

    if audience.test_devices:
        return context.channel_id is not None and context.channel_id in audience.test_devices

    return True


if TYPE_CHECKING:
    _predicate_check: AudiencePredicate = check_audience_for_scheduling
