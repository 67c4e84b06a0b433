"""Public interface for the remote-data adapter."""

from __future__ import annotations

from .client import RemoteDataApiClient, RemoteDataAPIError, RemoteDataFetchResult, split_locale
from .feed import LAST_MODIFIED_KEY, RETAINED_PAYLOADS_KEY, PollingRemoteDataFeed
from .schema import PayloadModel, RemoteDataResponse
from .translator import parse_payloads

__all__ = [
    "LAST_MODIFIED_KEY",
    "RETAINED_PAYLOADS_KEY",
    "PayloadModel",
    "PollingRemoteDataFeed",
    "RemoteDataAPIError",
    "RemoteDataApiClient",
    "RemoteDataFetchResult",
    "RemoteDataResponse",
    "parse_payloads",
    "split_locale",
]
