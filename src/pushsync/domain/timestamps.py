"""Conversions between ISO-8601 strings and epoch milliseconds."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_MILLISECOND = timedelta(milliseconds=1)


def parse_timestamp(value: object) -> int:
    """Return ``value`` as epoch milliseconds.

    Accepts integer milliseconds or an ISO-8601 string. Naive strings are read
    as UTC. Raises ``ValueError`` for anything else.
    """

    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid timestamp: {value!r}")

    normalized = value.strip()
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise ValueError(f"Invalid ISO timestamp: {value}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return (dt - _EPOCH) // _ONE_MILLISECOND


def to_iso8601(millis: int) -> str:
    """Format epoch milliseconds the way the remote-data API expects them."""

    dt = _EPOCH + millis * _ONE_MILLISECOND
    return dt.strftime("%Y-%m-%dT%H:%M:%S")


def now_millis() -> int:
    return (datetime.now(UTC) - _EPOCH) // _ONE_MILLISECOND
