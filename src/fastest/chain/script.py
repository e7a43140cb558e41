"""Scenario steps -> chain calls."""

from __future__ import annotations

import contextlib
import inspect
import logging
import time
from typing import TYPE_CHECKING, Any

from fastest.chain.android import AndroidTester
from fastest.chain.tester import Tester
from fastest.core.exceptions import ScenarioError
from fastest.core.models import ANDROID_ACTIONS, Platform, ScenarioResult, WireResponse
from fastest.remote.element import Element

if TYPE_CHECKING:
    from fastest.core.models import Config, Scenario, StepConfig

logger = logging.getLogger(__name__)


def build_tester(config: Config, scenario: Scenario | None = None, **kwargs: Any) -> Tester:
    """Tester flavour for the configured platform.

    Raises:
        ScenarioError: If the scenario uses Android finders on a generic platform.
    """
    if config.platform == Platform.ANDROID:
        return AndroidTester.from_config(config, **kwargs)
    if scenario is not None and scenario.needs_android:
        msg = f"Scenario {scenario.id} uses Android finders but platform is {config.platform}"
        raise ScenarioError(msg)
    return Tester.from_config(config, **kwargs)


def check_step_arguments(steps: list[StepConfig]) -> None:
    """Check each step's args against its chain method signature.

    Raises:
        ScenarioError: For the first step whose arguments do not bind.
    """
    for number, step in enumerate(steps, start=1):
        method = getattr(AndroidTester, step.action.value)
        try:
            inspect.signature(method).bind(None, *step.args, **step.kwargs)
        except TypeError as e:
            msg = f"Step {number} ({step.action.value}): bad arguments: {e}"
            raise ScenarioError(msg) from e


def apply_steps(tester: Tester, steps: list[StepConfig]) -> Tester:
    """Append every step to ``tester`` in order and return it.

    Nothing runs here; the caller awaits the chain.
    """
    check_step_arguments(steps)
    for number, step in enumerate(steps, start=1):
        if step.action in ANDROID_ACTIONS and not isinstance(tester, AndroidTester):
            msg = f"Step {number} ({step.action.value}) needs an Android tester"
            raise ScenarioError(msg)
        getattr(tester, step.action.value)(*step.args, **step.kwargs)
    return tester


async def run_scenario(config: Config, scenario: Scenario, **kwargs: Any) -> ScenarioResult:
    """Run one scenario on a fresh session and always release the session.

    Step failures are recorded in the result, not raised.
    kwargs go to the Tester constructor (e.g. ``connection``).
    """
    start = time.monotonic()
    tester = build_tester(config, scenario, **kwargs)
    error: str | None = None
    value: Any = None

    try:
        apply_steps(tester, scenario.steps)
        await tester.init()
        value = await tester
    except Exception as e:  # noqa: BLE001
        error = str(e) or type(e).__name__
        logger.debug("Scenario %s failed", scenario.id, exc_info=True)
    finally:
        if tester.session.id is not None:
            with contextlib.suppress(Exception):
                await tester.quit()
        else:
            await tester.session.close()

    return ScenarioResult(
        scenario_id=scenario.id,
        scenario_name=scenario.name,
        passed=error is None,
        total_steps=len(scenario.steps),
        error_message=error,
        value=_reportable(value),
        duration_ms=(time.monotonic() - start) * 1000,
    )


def _reportable(value: Any) -> Any:
    """Chain values that can go into a report; element handles become their ids."""
    if isinstance(value, list):
        return [_reportable(item) for item in value]
    if isinstance(value, Element):
        return value.id
    if isinstance(value, WireResponse):
        return value.body
    return value
