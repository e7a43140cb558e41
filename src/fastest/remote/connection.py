"""Connection — JSON-over-HTTP gateway to the automation server.

Every path is resolved below ``<server_url>wd/hub/``.
Transport errors and non-2xx replies propagate as httpx exceptions; no retries here.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any

import httpx

from fastest.core.models import WireResponse

logger = logging.getLogger(__name__)

ROUTE_PREFIX = "wd/hub/"


class Connection:
    """Thin async HTTP client bound to one automation server."""

    def __init__(
        self,
        server_url: str,
        *,
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not server_url:
            msg = "server_url is required"
            raise ValueError(msg)
        if not server_url.endswith("/"):
            server_url += "/"
        self._server_url = server_url
        self._client = httpx.AsyncClient(timeout=timeout_s, transport=transport)

    @property
    def url(self) -> str:
        """Normalized server url, always ending with '/'."""
        return self._server_url

    def path(self, path: str) -> str:
        """Absolute url for a protocol-relative path."""
        return f"{self._server_url}{ROUTE_PREFIX}{path}"

    async def get(self, path: str) -> WireResponse:
        return await self._request("GET", path)

    async def post(self, path: str, data: dict[str, Any] | None = None) -> WireResponse:
        return await self._request("POST", path, data if data is not None else {})

    async def delete(self, path: str) -> WireResponse:
        return await self._request("DELETE", path)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> Connection:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def _request(
        self, method: str, path: str, data: dict[str, Any] | None = None
    ) -> WireResponse:
        url = self.path(path)
        logger.debug("%s %s %s", method, url, data if data is not None else "")
        resp = await self._client.request(method, url, json=data)
        resp.raise_for_status()
        return WireResponse(status=resp.status_code, body=_decode_body(resp))


def _decode_body(resp: httpx.Response) -> dict[str, Any]:
    """Decoded JSON object of a reply. Empty body is {}, a bare JSON value is wrapped."""
    if not resp.content:
        return {}
    data = resp.json()
    if not isinstance(data, dict):
        return {"value": data}
    return data
