"""HTTP client for the remote-data API."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from http import HTTPStatus
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from pushsync import __version__
from pushsync.adapters.http_resilience import ResilientClient
from pushsync.config import AppConfig, MissingConfigurationError, get_app_config

from .translator import parse_payloads

if TYPE_CHECKING:
    from collections.abc import Callable

    from pushsync.config import ResilienceConfig
    from pushsync.domain.model import JsonMap, RemoteDataPayload

log = getLogger(__name__)

REMOTE_DATA_PATH = "api/remote-data/app/{app_key}/{platform}"


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def split_locale(locale: str | None) -> tuple[str | None, str | None]:
    """Split ``en_US`` or ``en-US`` into language and country."""

    if not locale:
        return None, None
    language, _, country = locale.replace("-", "_").partition("_")
    return language or None, country or None


class RemoteDataAPIError(RuntimeError):
    """Raised when the remote-data API answers with anything but 200 or 304."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


@dataclass(frozen=True, slots=True)
class RemoteDataFetchResult:
    status: int
    metadata: JsonMap
    payloads: tuple[RemoteDataPayload, ...] = ()
    last_modified: str | None = None

    @property
    def not_modified(self) -> bool:
        return self.status == HTTPStatus.NOT_MODIFIED


@dataclass(slots=True)
class RemoteDataApiClient:
    """Fetch every remote-data payload for the configured app in one request."""

    config: AppConfig = field(default_factory=get_app_config)
    sdk_version: str = __version__
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    @property
    def url(self) -> str:
        app_key = self.config.app_key
        if app_key is None:
            key_var = (
                "PUSHSYNC_PRODUCTION_APP_KEY"
                if self.config.in_production
                else "PUSHSYNC_DEVELOPMENT_APP_KEY"
            )
            raise MissingConfigurationError("Remote data requires an app key", names=[key_var])
        path = REMOTE_DATA_PATH.format(app_key=app_key, platform=self.config.platform)
        return f"{self.config.remote_data_url.rstrip('/')}/{path}"

    def query_params(self) -> httpx.QueryParams:
        params: dict[str, str] = {"sdk_version": self.sdk_version}
        language, country = split_locale(self.config.locale)
        if language is not None:
            params["language"] = language
        if country is not None:
            params["country"] = country
        return httpx.QueryParams(params)

    def metadata(self) -> dict[str, object]:
        """Fingerprint of the request context, attached to every fetched payload."""

        language, country = split_locale(self.config.locale)
        metadata: dict[str, object] = {"url": str(httpx.URL(self.url, params=self.query_params()))}
        if language is not None:
            metadata["language"] = language
        if country is not None:
            metadata["country"] = country
        return metadata

    def fetch(self, last_modified: str | None = None) -> RemoteDataFetchResult:
        return asyncio.run(self._fetch_async(last_modified))

    async def _fetch_async(self, last_modified: str | None) -> RemoteDataFetchResult:
        headers: dict[str, str] = {"Accept": "application/json"}
        if last_modified is not None:
            headers["If-Modified-Since"] = last_modified
        auth = httpx.BasicAuth(self.config.app_key or "", self.config.app_secret or "")

        async with self.client_factory(self.config.remote_data_resilience()) as client:
            response = await client.get(
                self.url, params=self.query_params(), headers=headers, auth=auth
            )
        return self._handle_response(response)

    def _handle_response(self, response: httpx.Response) -> RemoteDataFetchResult:
        metadata = self.metadata()
        if response.status_code == HTTPStatus.NOT_MODIFIED:
            log.debug("Remote data not modified since last fetch")
            return RemoteDataFetchResult(
                status=response.status_code,
                metadata=metadata,
                last_modified=response.headers.get("Last-Modified"),
            )
        if response.status_code != HTTPStatus.OK:
            raise RemoteDataAPIError(
                f"Remote data request failed with status {response.status_code}",
                status=response.status_code,
            )

        try:
            payloads = parse_payloads(response.json(), metadata=metadata)
        except (ValueError, ValidationError) as exc:
            raise RemoteDataAPIError(
                "Unexpected remote data response payload", status=response.status_code
            ) from exc

        log.debug("Fetched %s remote data payloads", len(payloads))
        return RemoteDataFetchResult(
            status=response.status_code,
            metadata=metadata,
            payloads=tuple(payloads),
            last_modified=response.headers.get("Last-Modified"),
        )
