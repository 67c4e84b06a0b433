from __future__ import annotations

import pytest

from pushsync.domain.audience_checks import check_audience_for_scheduling
from pushsync.domain.model import Audience, DeviceContext


def test_no_audience_is_always_eligible() -> None:
    assert check_audience_for_scheduling(DeviceContext(), None, False)  # noqa: FBT003


@pytest.mark.parametrize(
    ("new_user", "allow_new_user", "expected"),
    [
        (True, True, True),
        (True, False, False),
        (False, True, False),
        (False, False, True),
        (None, True, True),
        (None, False, True),
    ],
)
def test_new_user_condition(
    new_user: bool | None,
    allow_new_user: bool,  # noqa: FBT001
    expected: bool,  # noqa: FBT001
) -> None:
    audience = Audience(new_user=new_user)

    assert check_audience_for_scheduling(DeviceContext(), audience, allow_new_user) is expected


def test_test_devices_require_matching_channel() -> None:
    audience = Audience(test_devices=("channel-1", "channel-2"))

    assert check_audience_for_scheduling(DeviceContext("channel-2"), audience, True)  # noqa: FBT003
    assert not check_audience_for_scheduling(DeviceContext("channel-3"), audience, True)  # noqa: FBT003
    assert not check_audience_for_scheduling(DeviceContext(), audience, True)  # noqa: FBT003


def test_new_user_mismatch_wins_over_test_device() -> None:
    audience = Audience(new_user=True, test_devices=("channel-1",))

    assert not check_audience_for_scheduling(DeviceContext("channel-1"), audience, False)  # noqa: FBT003
