"""Tests for Poller — fixed-interval retry with a deadline."""

from __future__ import annotations

import time

import pytest

from fastest.chain.poller import DEFAULT_POLL_INTERVAL_MS, Poller


class Flaky:
    """Fails ``failures`` times, then returns ``result``."""

    def __init__(self, failures: int, result: str = "done") -> None:
        self.failures = failures
        self.result = result
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise LookupError(f"not yet ({self.calls})")
        return self.result


class TestPoller:
    @pytest.mark.asyncio
    async def test_first_success_returns_immediately(self) -> None:
        """A first success returns without sleeping."""
        op = Flaky(0)
        start = time.monotonic()
        assert await Poller(50).poll(op, 1000) == "done"
        assert op.calls == 1
        assert time.monotonic() - start < 0.05

    @pytest.mark.asyncio
    async def test_retries_until_success(self) -> None:
        """Errors are retried until the operation succeeds."""
        op = Flaky(3)
        assert await Poller(10).poll(op, 5000) == "done"
        assert op.calls == 4

    @pytest.mark.asyncio
    async def test_reraises_last_error_after_timeout(self) -> None:
        """After the deadline the last error is raised."""
        op = Flaky(1000)
        start = time.monotonic()
        with pytest.raises(LookupError) as exc_info:
            await Poller(10).poll(op, 60)

        assert time.monotonic() - start >= 0.06
        assert str(exc_info.value) == f"not yet ({op.calls})"

    @pytest.mark.asyncio
    async def test_zero_timeout_makes_one_attempt(self) -> None:
        """A zero timeout still tries once."""
        op = Flaky(5)
        with pytest.raises(LookupError):
            await Poller(10).poll(op, 0)
        assert op.calls == 1

    @pytest.mark.asyncio
    async def test_interval_spaces_attempts(self) -> None:
        """Attempts are spaced by the interval."""
        op = Flaky(2)
        start = time.monotonic()
        await Poller(40).poll(op, 5000)
        assert time.monotonic() - start >= 0.08

    def test_default_interval(self) -> None:
        assert DEFAULT_POLL_INTERVAL_MS == 50
        assert Poller()._interval == 0.05
