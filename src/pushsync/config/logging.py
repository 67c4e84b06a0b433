"""Shared logging helpers for pushsync."""

from __future__ import annotations

import logging

from .errors import ConfigurationError


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: we default
    to INFO level and a terse format suitable for CLI output. Pass ``force=True`` to
    reconfigure during tests or specialised entry points.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(threadName)s %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )


def parse_log_level(value: str | int | None, default: int) -> int:
    """Parse a level given by name (``"debug"``) or number, falling back to ``default``."""

    if value is None:
        return default
    if isinstance(value, int):
        return value
    stripped = value.strip()
    if not stripped:
        return default
    if stripped.isdigit():
        return int(stripped)
    level = logging.getLevelNamesMapping().get(stripped.upper())
    if level is None:
        raise ConfigurationError(f"Unknown log level: {value!r}")
    return level
