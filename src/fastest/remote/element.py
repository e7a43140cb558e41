"""Element — handle to one remote UI element.

Each method is exactly one request scoped to ``session/{sid}/element/{eid}/``.
"""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any

from fastest.core.exceptions import ProtocolError

if TYPE_CHECKING:
    from fastest.core.models import WireResponse
    from fastest.remote.session import Session

ELEMENT_ID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)

# Pixels, pixels per second.
DEFAULT_FLICK_OFFSET = 2000
DEFAULT_FLICK_SPEED = 8000


def extract_element_id(payload: dict[str, Any]) -> str:
    """Return the first property value that looks like an element id.

    WebDriver only promises the id lives in one of the object's own properties;
    the key differs between JSONWire ("ELEMENT"), W3C and server versions.
    """
    for value in payload.values():
        if isinstance(value, str) and ELEMENT_ID_PATTERN.search(value):
            return value
    msg = f"Could not extract element id from payload keys: {list(payload)}"
    raise ProtocolError(msg)


class Element:
    """Remote element reference owned by a Session."""

    def __init__(self, payload: dict[str, Any], session: Session) -> None:
        self.session = session
        self.id = extract_element_id(payload)

    async def text(self) -> str:
        return (await self._get("text")).body.get("value")

    async def rect(self) -> dict[str, Any]:
        return (await self._get("rect")).body.get("value")

    async def is_displayed(self) -> bool:
        return (await self._get("displayed")).body.get("value")

    async def is_enabled(self) -> bool:
        return (await self._get("enabled")).body.get("value")

    async def is_selected(self) -> bool:
        return (await self._get("selected")).body.get("value")

    async def click(self) -> WireResponse:
        return await self._post("click", {})

    async def clear(self) -> WireResponse:
        return await self._post("clear", {})

    async def set_value(self, text: str) -> WireResponse:
        """Type text. The server expects the text split into single characters."""
        return await self._post("value", {"value": list(text)})

    async def flick(self, xoffset: int, yoffset: int, speed: int) -> WireResponse:
        """Drag-like gesture starting on this element."""
        return await self.session.post(
            "touch/flick",
            {
                "element": self.id,
                "xoffset": xoffset,
                "yoffset": yoffset,
                "speed": speed,
            },
        )

    async def flick_up(self, offset: int | None = None, speed: int | None = None) -> WireResponse:
        offset, speed = _flick_defaults(offset, speed)
        return await self.flick(0, -offset, speed)

    async def flick_down(self, offset: int | None = None, speed: int | None = None) -> WireResponse:
        offset, speed = _flick_defaults(offset, speed)
        return await self.flick(0, offset, speed)

    async def flick_left(self, offset: int | None = None, speed: int | None = None) -> WireResponse:
        offset, speed = _flick_defaults(offset, speed)
        return await self.flick(-offset, 0, speed)

    async def flick_right(
        self, offset: int | None = None, speed: int | None = None
    ) -> WireResponse:
        offset, speed = _flick_defaults(offset, speed)
        return await self.flick(offset, 0, speed)

    def path(self, path: str) -> str:
        return f"element/{self.id}/{path}"

    def to_json(self) -> dict[str, str]:
        """Wire form used when an element is embedded in another request body."""
        return {"ELEMENT": self.id}

    def __str__(self) -> str:
        return json.dumps(self.to_json(), indent=2)

    def __repr__(self) -> str:
        return f"Element(id={self.id!r})"

    async def _get(self, path: str) -> WireResponse:
        return await self.session.get(self.path(path))

    async def _post(self, path: str, data: dict[str, Any]) -> WireResponse:
        return await self.session.post(self.path(path), data)


def _flick_defaults(offset: int | None, speed: int | None) -> tuple[int, int]:
    return (
        DEFAULT_FLICK_OFFSET if offset is None else offset,
        DEFAULT_FLICK_SPEED if speed is None else speed,
    )
