"""Poller — bounded retry of an async operation at a fixed interval.

Any exception from the operation means "not yet"; once the timeout has
elapsed the most recent exception is re-raised unchanged.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_POLL_INTERVAL_MS = 50


class Poller:
    """Fixed-interval retry loop, no backoff."""

    def __init__(self, interval_ms: int = DEFAULT_POLL_INTERVAL_MS) -> None:
        self._interval = interval_ms / 1000

    async def poll(self, op: Callable[[], Awaitable[T]], timeout_ms: float) -> T:
        """Call ``op`` until it succeeds or ``timeout_ms`` has elapsed.

        Args:
            op: Zero-argument coroutine function.
            timeout_ms: Budget measured from the first attempt.

        Returns:
            The first successful result of ``op``.
        """
        timeout = timeout_ms / 1000
        start = time.monotonic()
        attempt = 0

        while True:
            attempt += 1
            try:
                return await op()
            except Exception as e:
                elapsed = time.monotonic() - start
                if elapsed >= timeout:
                    logger.debug("poll gave up after %d attempt(s): %s", attempt, e)
                    raise
                logger.debug("poll attempt %d failed (%.0fms): %s", attempt, elapsed * 1000, e)
            await asyncio.sleep(self._interval)
