"""Tester — deferred, fluent execution chain against one remote session.

Every fluent method appends a step and returns the Tester, so calls compose:

    tester = Tester("http://127.0.0.1:4723", capabilities=caps)
    await tester.init()
    text = await tester.elements_by_xpath("//Button").at(1).click().text()

Steps run strictly one after another once ``init()`` has created the session.
A failing step skips every later step until a ``catch`` step handles it.
Awaiting the Tester runs all pending steps and returns the last value or
raises the failure; a failure raised that way is consumed, and the chain
continues from a clean state.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import deque
from collections.abc import Awaitable, Callable, Generator
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Self

from fastest.chain.lazy import Lazy, resolve
from fastest.chain.poller import DEFAULT_POLL_INTERVAL_MS, Poller
from fastest.core.exceptions import ChainStateError, ElementNotFoundError, ElementStateError
from fastest.core.models import Using
from fastest.remote.session import Session

if TYPE_CHECKING:
    from fastest.core.models import Config
    from fastest.remote.connection import Connection
    from fastest.remote.element import Element

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 10000


class StepKind(StrEnum):
    THEN = "then"
    CATCH = "catch"


@dataclass
class _Step:
    kind: StepKind
    name: str
    fn: Callable[[Any], Any]


class Tester:
    """Fluent chain of UI steps executed in order against one session."""

    session_class: type[Session] = Session

    def __init__(
        self,
        server_url: str | None = None,
        *,
        capabilities: dict[str, Any] | None = None,
        session: Session | None = None,
        connection: Connection | None = None,
        implicit_wait_ms: int = DEFAULT_TIMEOUT_MS,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        request_timeout_s: float = 30.0,
    ) -> None:
        self.session = session or self.session_class(
            server_url,
            capabilities=capabilities,
            connection=connection,
            timeout_s=request_timeout_s,
        )
        self.current_elements: list[Element] = []
        self.current_index = 0
        self.current_selector: str | None = None
        self.timeout = implicit_wait_ms
        self._poller = Poller(poll_interval_ms)

        self._steps: deque[_Step] = deque()
        self._started = asyncio.Event()
        self._lock = asyncio.Lock()
        self._value: Any = None
        self._error: Exception | None = None
        # Held only so the drain task is not garbage collected.
        self._runner: asyncio.Task[None] | None = None

    @classmethod
    def from_config(cls, config: Config, **kwargs: Any) -> Self:
        """Build a chain from a loaded Config; kwargs override constructor args."""
        options: dict[str, Any] = {
            "capabilities": config.capabilities,
            "implicit_wait_ms": config.timing.implicit_wait_ms,
            "poll_interval_ms": config.timing.poll_interval_ms,
            "request_timeout_s": config.timing.request_timeout_s,
        }
        options.update(kwargs)
        return cls(config.server_url, **options)

    @property
    def current_element(self) -> Element:
        """Element at ``current_index`` of the latest find result."""
        if not 0 <= self.current_index < len(self.current_elements):
            raise ElementNotFoundError(self.current_selector, self.current_index)
        return self.current_elements[self.current_index]

    @property
    def started(self) -> bool:
        return self._started.is_set()

    # -- Lifecycle ------------------------------------------------------------

    async def init(self) -> dict[str, Any]:
        """Create the remote session and start running queued steps.

        Must be called exactly once before the chain can make progress.

        Returns:
            The server's session creation body.

        Raises:
            ChainStateError: If the chain was already started.
        """
        if self.started:
            msg = "init() already called on this chain"
            raise ChainStateError(msg)
        body = await self.session.create()
        self._started.set()
        if self._steps:
            self._runner = asyncio.create_task(self._drain())
        return body

    def quit(self) -> Self:
        """Destroy the session; the chain should not be reused afterwards."""

        async def step(_: Any) -> None:
            try:
                await self.session.destroy()
            finally:
                await self.session.close()

        return self._then("quit", step)

    def then(self, fn: Callable[[Any], Any]) -> Self:
        """Append a step called with the previous step's value.

        ``fn`` may be a plain function or a coroutine function; its result
        becomes the chain value. Returning this chain fails the step with
        ChainStateError, since awaiting it from inside a step would deadlock.
        """
        return self._then(getattr(fn, "__name__", "then"), fn)

    def catch(self, fn: Callable[[Exception], Any]) -> Self:
        """Append a step that runs only when an earlier step failed.

        ``fn`` receives the exception; its result resumes the chain. If it
        raises, the chain stays failed with the new exception.
        """
        self._steps.append(_Step(StepKind.CATCH, getattr(fn, "__name__", "catch"), fn))
        return self

    def __await__(self) -> Generator[Any, None, Any]:
        return self._settle().__await__()

    # -- Session steps --------------------------------------------------------

    def set_implicit_wait_timeout(self, timeout: Lazy[int]) -> Self:
        """Set how long waits keep retrying, in milliseconds.

        Also sent to the server as its implicit wait for element lookups.
        Polls that start after this step use the new value.
        """

        async def step(_: Any) -> Any:
            self.timeout = resolve(timeout)
            return await self.session.set_implicit_wait_timeout(self.timeout)

        return self._then("set_implicit_wait_timeout", step)

    def window_rect(self) -> Self:
        return self._then("window_rect", lambda _: self.session.window_rect())

    def reset_app(self) -> Self:
        return self._then("reset_app", lambda _: self.session.reset_app())

    def hide_keyboard(self) -> Self:
        return self._then("hide_keyboard", lambda _: self.session.hide_keyboard())

    def sleep(self, time_ms: Lazy[float]) -> Self:
        """Pause the chain for ``time_ms`` milliseconds."""
        return self._then("sleep", lambda _: asyncio.sleep(resolve(time_ms) / 1000))

    # -- Finding --------------------------------------------------------------

    def elements(self, using: Lazy[str], selector: Lazy[str]) -> Self:
        """Find elements; the result becomes the current element set.

        Args:
            using: Strategy, one of 'xpath', 'class name', 'id'.
            selector: Selector text for that strategy.
        """

        async def step(_: Any) -> list[Element]:
            how = resolve(using)
            what = resolve(selector)
            found = await self.session.elements(how, what)
            self.current_elements = found
            self.current_index = 0
            self.current_selector = what
            logger.debug("%s=%r matched %d element(s)", how, what, len(found))
            return found

        return self._then("elements", step)

    def elements_by_xpath(self, selector: Lazy[str]) -> Self:
        return self.elements(Using.XPATH, selector)

    def elements_by_id(self, selector: Lazy[str]) -> Self:
        return self.elements(Using.ID, selector)

    def elements_by_class_name(self, selector: Lazy[str]) -> Self:
        return self.elements(Using.CLASS_NAME, selector)

    def at(self, index: Lazy[int]) -> Self:
        """Make the ``index``th element of the latest find the current one."""

        def step(_: Any) -> None:
            self.current_index = resolve(index)

        return self._then("at", step)

    def reverse_at(self, index: Lazy[int]) -> Self:
        """Like ``at`` but counted from the end: 0 is the last element."""

        def step(_: Any) -> None:
            self.current_index = len(self.current_elements) - resolve(index) - 1

        return self._then("reverse_at", step)

    # -- Element actions ------------------------------------------------------

    def click(self) -> Self:
        return self._then("click", lambda _: self.current_element.click())

    def set_value(self, value: Lazy[str]) -> Self:
        """Type text into the current element."""
        return self._then("set_value", lambda _: self.current_element.set_value(resolve(value)))

    def clear(self) -> Self:
        return self._then("clear", lambda _: self.current_element.clear())

    def text(self) -> Self:
        return self._then("text", lambda _: self.current_element.text())

    def rect(self) -> Self:
        """Bounding box of the current element."""
        return self._then("rect", lambda _: self.current_element.rect())

    def flick(self, xoffset: Lazy[int], yoffset: Lazy[int], speed: Lazy[int]) -> Self:
        return self._then(
            "flick",
            lambda _: self.current_element.flick(resolve(xoffset), resolve(yoffset), resolve(speed)),
        )

    def flick_up(self, offset: Lazy[int | None] = None, speed: Lazy[int | None] = None) -> Self:
        return self._then(
            "flick_up", lambda _: self.current_element.flick_up(resolve(offset), resolve(speed))
        )

    def flick_down(self, offset: Lazy[int | None] = None, speed: Lazy[int | None] = None) -> Self:
        return self._then(
            "flick_down", lambda _: self.current_element.flick_down(resolve(offset), resolve(speed))
        )

    def flick_left(self, offset: Lazy[int | None] = None, speed: Lazy[int | None] = None) -> Self:
        return self._then(
            "flick_left", lambda _: self.current_element.flick_left(resolve(offset), resolve(speed))
        )

    def flick_right(self, offset: Lazy[int | None] = None, speed: Lazy[int | None] = None) -> Self:
        return self._then(
            "flick_right",
            lambda _: self.current_element.flick_right(resolve(offset), resolve(speed)),
        )

    # -- Assertions and waits -------------------------------------------------

    def is_displayed(self) -> Self:
        """Fail unless the current element is displayed."""
        return self._then("is_displayed", lambda _: self._check_displayed())

    def wait_displayed(self, timeout: Lazy[int | None] = None) -> Self:
        """Wait until the current element is displayed.

        Fails with the last check's error once ``timeout`` (default: the
        implicit wait timeout) has elapsed.
        """
        return self._then(
            "wait_displayed", lambda _: self.poll(self._check_displayed, resolve(timeout))
        )

    def is_enabled(self) -> Self:
        return self._then("is_enabled", lambda _: self._check_enabled())

    def wait_enabled(self, timeout: Lazy[int | None] = None) -> Self:
        return self._then(
            "wait_enabled", lambda _: self.poll(self._check_enabled, resolve(timeout))
        )

    def is_selected(self) -> Self:
        return self._then("is_selected", lambda _: self._check_selected())

    def wait_selected(self, timeout: Lazy[int | None] = None) -> Self:
        return self._then(
            "wait_selected", lambda _: self.poll(self._check_selected, resolve(timeout))
        )

    def is_not_displayed(self) -> Self:
        """Fail if the current element is displayed.

        An empty find result counts as not displayed. Checked once, not polled.
        """

        async def step(_: Any) -> bool:
            if not self.current_elements:
                return True
            if await self.current_element.is_displayed():
                raise self._state_error("is displayed")
            return True

        return self._then("is_not_displayed", step)

    def wait_stop(self, timeout: Lazy[int | None] = None) -> Self:
        """Wait until two consecutive rect samples have the same x and y."""

        async def step(_: Any) -> dict[str, Any]:
            previous: dict[str, Any] | None = None

            async def sample() -> dict[str, Any]:
                nonlocal previous
                rect = await self.current_element.rect()
                if previous is None or (previous["x"], previous["y"]) != (rect["x"], rect["y"]):
                    previous = rect
                    raise self._state_error("did not stop moving")
                return rect

            return await self.poll(sample, resolve(timeout))

        return self._then("wait_stop", step)

    async def poll(self, op: Callable[[], Awaitable[Any]], timeout: int | None = None) -> Any:
        """Retry ``op`` every poll interval until it succeeds or times out.

        Args:
            op: Zero-argument coroutine function; raising means "not yet".
            timeout: Milliseconds. None means the chain's current implicit
                wait timeout, read once here.
        """
        effective = self.timeout if timeout is None else timeout
        return await self._poller.poll(op, effective)

    # -- Internals ------------------------------------------------------------

    def _then(self, name: str, fn: Callable[[Any], Any]) -> Self:
        self._steps.append(_Step(StepKind.THEN, name, fn))
        return self

    async def _check_displayed(self) -> bool:
        element = self.current_element
        if not await element.is_displayed():
            raise self._state_error("is not displayed")
        return True

    async def _check_enabled(self) -> bool:
        element = self.current_element
        if not await element.is_enabled():
            raise self._state_error("is not enabled")
        return True

    async def _check_selected(self) -> bool:
        element = self.current_element
        if not await element.is_selected():
            raise self._state_error("is not selected")
        return True

    def _state_error(self, state: str) -> ElementStateError:
        return ElementStateError(self.current_selector, self.current_index, state)

    async def _drain(self) -> None:
        """Run pending steps in order until the queue is empty."""
        async with self._lock:
            while self._steps:
                step = self._steps.popleft()
                failed = self._error is not None
                if failed != (step.kind == StepKind.CATCH):
                    if failed:
                        logger.debug("skipping %s after failure", step.name)
                    continue
                try:
                    result = step.fn(self._error if failed else self._value)
                    if result is self:
                        msg = f"step {step.name} returned the chain itself"
                        raise ChainStateError(msg)
                    if inspect.isawaitable(result):
                        result = await result
                except Exception as e:
                    logger.debug("step %s failed: %s", step.name, e)
                    self._error = e
                else:
                    self._value = result
                    self._error = None

    async def _settle(self) -> Any:
        await self._started.wait()
        await self._drain()
        if self._error is not None:
            error, self._error, self._value = self._error, None, None
            raise error
        return self._value
