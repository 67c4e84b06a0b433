"""Audience rules attached to in-app messages and the device they are checked against."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True, kw_only=True)
class Audience:
    """Scheduling-time audience conditions.

    ``new_user`` restricts a message to devices that count as new users relative
    to the message (``True``) or to existing users (``False``). ``test_devices``
    restricts it to the listed channel ids.
    """

    new_user: bool | None = None
    test_devices: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class DeviceContext:
    channel_id: str | None = None
