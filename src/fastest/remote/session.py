"""Session — server-side automation context bound to one device/app.

Session does not check that ``id`` is set before scoped calls;
the chain always runs ``create()`` first.
"""

from __future__ import annotations

import logging
from typing import Any

from fastest.core.exceptions import ProtocolError
from fastest.core.models import WireResponse
from fastest.remote.connection import Connection
from fastest.remote.element import Element

logger = logging.getLogger(__name__)


class Session:
    """One remote session and the requests scoped to it."""

    element_class: type[Element] = Element
    connection_class: type[Connection] = Connection

    def __init__(
        self,
        server_url: str | None = None,
        *,
        capabilities: dict[str, Any] | None = None,
        connection: Connection | None = None,
        timeout_s: float = 30.0,
    ) -> None:
        if connection is None:
            if server_url is None:
                msg = "Session needs either server_url or connection"
                raise ValueError(msg)
            connection = self.connection_class(server_url, timeout_s=timeout_s)
            self._owns_connection = True
        else:
            self._owns_connection = False
        self.connection = connection
        self.capabilities: dict[str, Any] = dict(capabilities or {})
        self.id: str | None = None

    async def create(self) -> dict[str, Any]:
        """Open the session; returns the server's creation body."""
        resp = await self.connection.post(
            "session", {"desiredCapabilities": self.capabilities}
        )
        body = resp.body
        session_id = body.get("sessionId")
        value = body.get("value")
        if not session_id and isinstance(value, dict):
            # W3C servers nest it under "value"
            session_id = value.get("sessionId")
        if not session_id:
            msg = "Server did not return a sessionId"
            raise ProtocolError(msg)
        self.id = str(session_id)
        logger.info("Session created: %s", self.id)
        return body

    async def destroy(self) -> None:
        await self.connection.delete(f"session/{self.id}")
        logger.info("Session destroyed: %s", self.id)
        self.id = None

    async def close(self) -> None:
        """Release the HTTP client, unless it was handed in by the caller."""
        if self._owns_connection:
            await self.connection.aclose()

    async def set_implicit_wait_timeout(self, timeout_ms: int) -> WireResponse:
        return await self.post("timeouts/implicit_wait", {"ms": timeout_ms})

    async def window_rect(self) -> dict[str, Any]:
        return (await self.get("window/rect")).body.get("value")

    async def elements(self, using: str, selector: str) -> list[Element]:
        resp = await self.post("elements", {"using": str(using), "value": selector})
        return self.wrap_elements(resp)

    async def reset_app(self) -> WireResponse:
        return await self.post("appium/app/reset", {})

    async def hide_keyboard(self) -> WireResponse:
        return await self.post("appium/device/hide_keyboard", {})

    async def get(self, path: str) -> WireResponse:
        return await self.connection.get(self.path(path))

    async def post(self, path: str, data: dict[str, Any] | None = None) -> WireResponse:
        return await self.connection.post(self.path(path), data)

    def path(self, path: str) -> str:
        return f"session/{self.id}/{path}"

    def wrap_elements(self, resp: WireResponse) -> list[Element]:
        return [self.element_class(item, self) for item in resp.body.get("value") or []]
