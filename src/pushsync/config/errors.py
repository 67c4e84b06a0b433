"""Errors raised while loading pushsync settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class ConfigurationError(RuntimeError):
    """A setting is present but unusable, such as a malformed credential or flag."""


class MissingConfigurationError(ConfigurationError):
    """Required settings are unset or blank; ``names`` lists the ones checked and missing."""

    def __init__(self, message: str, *, names: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.names = tuple(names)
