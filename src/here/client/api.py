"""HTTP client for the Here registry API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from here.core.errors import TransportError
from here.schemas.presence import PresenceRecord
from here.schemas.registry import AppInfo, GetClientInfoResponse, PostClientInfoResponse

# Configure logger for this module
logger = logging.getLogger(__name__)

# HTTP status codes
HTTP_OK = 200
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404

ResponseT = TypeVar("ResponseT", bound=BaseModel)


@dataclass(frozen=True)
class RegistryClientConfig:
    """Immutable configuration for registry requests."""

    api_url: str
    timeout_seconds: float = 10.0


class RegistryClient:
    """Async wrapper around the registry endpoints.

    Every failure, whether from the network, the status code or the body,
    surfaces as ``TransportError``.
    """

    def __init__(
        self,
        config: RegistryClientConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=config.api_url,
            timeout=httpx.Timeout(config.timeout_seconds),
            transport=transport,
        )

    async def __aenter__(self) -> RegistryClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

    @staticmethod
    def _parse(response: httpx.Response, model: type[ResponseT]) -> ResponseT:
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise TransportError(
                f"Unexpected response body from {response.request.url}: {exc}"
            ) from exc

    async def get_server_info(self) -> AppInfo:
        """Fetch the server's application name and version."""
        response = await self._request("GET", "/server")
        if response.status_code != HTTP_OK:
            raise TransportError(f"Server info request returned {response.status_code}")
        return self._parse(response, AppInfo)

    async def post_client_info(self, record: PresenceRecord) -> PostClientInfoResponse:
        """Register ``record`` and return the server's reply with the lifetime."""
        response = await self._request(
            "POST",
            "/client/post",
            json=record.model_dump(mode="json", by_alias=True),
        )
        if response.status_code != HTTP_OK:
            raise TransportError(f"Registration returned {response.status_code}")
        reply = self._parse(response, PostClientInfoResponse)
        if not reply.is_ok:
            raise TransportError(f"Registration rejected: {reply.message}")
        return reply

    async def get_client_info(
        self, account: str, passwd: str | None = None
    ) -> GetClientInfoResponse:
        """Look up ``account``.

        Not-found and forbidden replies are returned as parsed bodies with
        ``is_ok`` false; other failures raise ``TransportError``.
        """
        params = {"account": account}
        if passwd is not None:
            params["passwd"] = passwd
        response = await self._request("GET", "/client/get", params=params)
        if response.status_code not in (HTTP_OK, HTTP_FORBIDDEN, HTTP_NOT_FOUND):
            raise TransportError(f"Lookup returned {response.status_code}")
        return self._parse(response, GetClientInfoResponse)
