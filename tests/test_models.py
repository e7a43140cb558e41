"""Tests for Pydantic models and enums."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from fastest.chain.android import AndroidTester
from fastest.chain.tester import Tester
from fastest.core.models import (
    ANDROID_ACTIONS,
    ARGUMENT_ACTIONS,
    ChainAction,
    Config,
    Platform,
    Scenario,
    ScenarioResult,
    StepConfig,
    TimingConfig,
    Using,
    WireResponse,
)

# ── Enums ──


class TestEnums:
    def test_using_wire_values(self) -> None:
        assert [u.value for u in Using] == ["xpath", "id", "class name"]

    def test_platform_values(self) -> None:
        assert set(Platform) == {"generic", "android"}

    @pytest.mark.parametrize("action", sorted(set(ChainAction) - ANDROID_ACTIONS))
    def test_generic_action_is_a_tester_method(self, action: ChainAction) -> None:
        assert callable(getattr(Tester, action.value))

    @pytest.mark.parametrize("action", sorted(ANDROID_ACTIONS))
    def test_android_action_is_android_only(self, action: ChainAction) -> None:
        assert callable(getattr(AndroidTester, action.value))
        assert not hasattr(Tester, action.value)

    def test_argument_actions_are_actions(self) -> None:
        assert set(ChainAction) >= ARGUMENT_ACTIONS


# ── Wire ──


class TestWireResponse:
    def test_default_body(self) -> None:
        assert WireResponse(status=200).body == {}


# ── Config ──


class TestConfig:
    def test_android_requires_package_name(self) -> None:
        with pytest.raises(ValidationError, match="package_name"):
            Config(platform=Platform.ANDROID)

    def test_android_with_package_name(self) -> None:
        config = Config(platform="android", package_name="fi.foo.bar")
        assert config.platform == Platform.ANDROID

    @pytest.mark.parametrize(
        "timing",
        [{"implicit_wait_ms": -1}, {"poll_interval_ms": 0}, {"request_timeout_s": 0}],
    )
    def test_timing_bounds(self, timing: dict[str, float]) -> None:
        with pytest.raises(ValidationError):
            TimingConfig(**timing)


# ── Scenario ──


class TestStepConfig:
    def test_action_from_string(self) -> None:
        step = StepConfig(action="elements_by_xpath", args=["//Button"])
        assert step.action == ChainAction.ELEMENTS_BY_XPATH

    def test_unknown_action(self) -> None:
        with pytest.raises(ValidationError):
            StepConfig(action="navigate")

    @pytest.mark.parametrize("action", sorted(ARGUMENT_ACTIONS))
    def test_argument_required(self, action: ChainAction) -> None:
        with pytest.raises(ValidationError, match="requires args or kwargs"):
            StepConfig(action=action)

    def test_kwargs_satisfy_argument(self) -> None:
        step = StepConfig(action="sleep", kwargs={"time_ms": 100})
        assert step.args == []

    def test_optional_arguments(self) -> None:
        assert StepConfig(action="wait_displayed").kwargs == {}


class TestScenario:
    def _steps(self) -> list[dict[str, object]]:
        return [{"action": "click"}]

    def test_valid(self) -> None:
        scenario = Scenario(id="SC-001", name="Login", steps=self._steps())
        assert scenario.tags == []
        assert scenario.needs_android is False

    @pytest.mark.parametrize("scenario_id", ["SC-1", "sc-001", "TC-001", "SC-001a"])
    def test_invalid_id(self, scenario_id: str) -> None:
        with pytest.raises(ValidationError):
            Scenario(id=scenario_id, name="Login", steps=self._steps())

    def test_needs_steps(self) -> None:
        with pytest.raises(ValidationError):
            Scenario(id="SC-001", name="Login", steps=[])

    def test_needs_android(self) -> None:
        scenario = Scenario(
            id="SC-002",
            name="Android login",
            steps=[{"action": "button", "args": ["Log in"]}, {"action": "click"}],
        )
        assert scenario.needs_android is True


class TestScenarioResult:
    def test_defaults(self) -> None:
        result = ScenarioResult(scenario_id="SC-001", scenario_name="x", passed=True, total_steps=2)
        assert result.error_message is None
        assert result.value is None
        assert result.duration_ms == 0.0
        assert result.timestamp is not None
