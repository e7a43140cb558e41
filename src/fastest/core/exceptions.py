"""fastest custom exception hierarchy.

All exceptions inherit from FastestError.
Transport failures are not wrapped: httpx exceptions reach the caller as-is.
"""


class FastestError(Exception):
    """Base exception for all fastest errors."""


class ConfigError(FastestError):
    """Configuration file load/validation error."""


class ScenarioError(FastestError):
    """Scenario YAML parsing/validation error."""


class ProtocolError(FastestError):
    """Server payload is missing a session id or element id."""


class ChainStateError(FastestError):
    """Chain lifecycle misuse, e.g. init() called twice."""


class ElementNotFoundError(FastestError):
    """Current element index is outside the latest find result."""

    def __init__(self, selector: str | None, index: int) -> None:
        self.selector = selector
        self.index = index
        super().__init__(f'could not find element "{selector}[{index}]"')


class ElementStateError(FastestError):
    """Current element is not in the checked state.

    ``state`` is the message suffix, e.g. ``is not displayed`` or
    ``did not stop moving``.
    """

    def __init__(self, selector: str | None, index: int, state: str) -> None:
        self.selector = selector
        self.index = index
        self.state = state
        super().__init__(f'element "{selector}[{index}]" {state}')
