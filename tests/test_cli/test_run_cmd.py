"""Tests for fastest run command."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import pytest
import yaml
from typer.testing import CliRunner

from fastest.cli.commands import run_cmd
from fastest.cli.main import app
from fastest.core.models import Config, Scenario, ScenarioResult

runner = CliRunner()

_SCENARIO = {
    "id": "SC-001",
    "name": "Open menu",
    "steps": [{"action": "elements_by_id", "args": ["menu"]}, {"action": "click"}],
}


@pytest.fixture(autouse=True)
def _isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith("FASTEST_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def calls(monkeypatch: pytest.MonkeyPatch) -> list[tuple[Config, Scenario]]:
    """Replace run_scenario; scenarios whose name contains 'broken' fail."""
    seen: list[tuple[Config, Scenario]] = []

    async def fake_run_scenario(config: Config, scenario: Scenario, **_: Any) -> ScenarioResult:
        seen.append((config, scenario))
        broken = "broken" in scenario.name
        return ScenarioResult(
            scenario_id=scenario.id,
            scenario_name=scenario.name,
            passed=not broken,
            total_steps=len(scenario.steps),
            error_message='could not find element "menu[0]"' if broken else None,
        )

    monkeypatch.setattr(run_cmd, "run_scenario", fake_run_scenario)
    return seen


def _write(path: Path, data: dict) -> Path:
    path.write_text(yaml.dump(data), encoding="utf-8")
    return path


def test_run_nonexistent_path() -> None:
    """fastest run fails with a nonexistent scenario path."""
    result = runner.invoke(app, ["run", "/nonexistent/scenarios"])
    assert result.exit_code == 1
    assert "Error" in result.output


def test_run_command_exists() -> None:
    """fastest run is registered and shows help."""
    result = runner.invoke(app, ["run", "--help"])
    assert result.exit_code == 0
    assert "scenarios" in result.output.lower() or "SCENARIOS_PATH" in result.output


def test_run_passing(tmp_path: Path, calls: list[tuple[Config, Scenario]]) -> None:
    scenario_file = _write(tmp_path / "SC-001.yaml", _SCENARIO)

    result = runner.invoke(app, ["run", str(scenario_file)])

    assert result.exit_code == 0
    assert "PASSED" in result.output
    assert "Summary: 1 passed, 0 failed, 1 total" in result.output
    assert [scenario.id for _, scenario in calls] == ["SC-001"]


def test_run_failure_exits_nonzero(tmp_path: Path, calls: list[tuple[Config, Scenario]]) -> None:
    _write(tmp_path / "SC-001.yaml", _SCENARIO)
    _write(tmp_path / "SC-002.yaml", {**_SCENARIO, "id": "SC-002", "name": "broken menu"})

    result = runner.invoke(app, ["run", str(tmp_path)])

    assert result.exit_code == 1
    assert "FAILED" in result.output
    assert 'could not find element "menu[0]"' in result.output
    assert "Summary: 1 passed, 1 failed, 2 total" in result.output


def test_run_server_override(tmp_path: Path, calls: list[tuple[Config, Scenario]]) -> None:
    scenario_file = _write(tmp_path / "SC-001.yaml", _SCENARIO)

    result = runner.invoke(app, ["run", str(scenario_file), "--server", "http://farm:4723/"])

    assert result.exit_code == 0
    config, _ = calls[0]
    assert config.server_url == "http://farm:4723/"


def test_run_uses_config_file(tmp_path: Path, calls: list[tuple[Config, Scenario]]) -> None:
    scenario_file = _write(tmp_path / "SC-001.yaml", _SCENARIO)
    config_file = _write(
        tmp_path / "custom.yaml", {"server_url": "http://lab:4723/", "capabilities": {"a": 1}}
    )

    result = runner.invoke(app, ["run", str(scenario_file), "-c", str(config_file)])

    assert result.exit_code == 0
    config, _ = calls[0]
    assert config.server_url == "http://lab:4723/"
    assert config.capabilities == {"a": 1}


def test_run_bad_config(tmp_path: Path, calls: list[tuple[Config, Scenario]]) -> None:
    scenario_file = _write(tmp_path / "SC-001.yaml", _SCENARIO)

    result = runner.invoke(app, ["run", str(scenario_file), "-c", str(tmp_path / "missing.yaml")])

    assert result.exit_code == 1
    assert "Config file does not exist" in result.output
    assert calls == []


def test_run_filters_by_tag(tmp_path: Path, calls: list[tuple[Config, Scenario]]) -> None:
    _write(tmp_path / "SC-001.yaml", {**_SCENARIO, "tags": ["smoke"]})
    _write(tmp_path / "SC-002.yaml", {**_SCENARIO, "id": "SC-002", "tags": ["slow"]})

    result = runner.invoke(app, ["run", str(tmp_path), "--tag", "smoke"])

    assert result.exit_code == 0
    assert [scenario.id for _, scenario in calls] == ["SC-001"]


def test_run_no_matching_tag(tmp_path: Path, calls: list[tuple[Config, Scenario]]) -> None:
    _write(tmp_path / "SC-001.yaml", _SCENARIO)

    result = runner.invoke(app, ["run", str(tmp_path), "-t", "nightly"])

    assert result.exit_code == 0
    assert "No scenarios match" in result.output
    assert calls == []


def test_run_passes_variables(tmp_path: Path, calls: list[tuple[Config, Scenario]]) -> None:
    scenario = {**_SCENARIO, "steps": [{"action": "elements_by_id", "args": ["{{target}}"]}]}
    scenario_file = _write(tmp_path / "SC-001.yaml", scenario)

    result = runner.invoke(app, ["run", str(scenario_file), "--var", "target=login"])

    assert result.exit_code == 0
    _, loaded = calls[0]
    assert loaded.steps[0].args == ["login"]


def test_run_rejects_malformed_variable(
    tmp_path: Path, calls: list[tuple[Config, Scenario]]
) -> None:
    scenario_file = _write(tmp_path / "SC-001.yaml", _SCENARIO)

    result = runner.invoke(app, ["run", str(scenario_file), "--var", "novalue"])

    assert result.exit_code == 2
    assert calls == []


def test_run_defaults_to_scenarios_dir(
    tmp_path: Path, calls: list[tuple[Config, Scenario]]
) -> None:
    """Without a path, fastest run loads scenarios from config scenarios_dir."""
    suite = tmp_path / "suite"
    suite.mkdir()
    _write(suite / "SC-001.yaml", _SCENARIO)
    _write(tmp_path / "fastest.config.yaml", {"scenarios_dir": str(suite)})

    result = runner.invoke(app, ["run"])

    assert result.exit_code == 0, result.output
    assert [scenario.id for _, scenario in calls] == ["SC-001"]


def test_run_missing_default_scenarios_dir(calls: list[tuple[Config, Scenario]]) -> None:
    """The default scenarios_dir must exist when no path is given."""
    result = runner.invoke(app, ["run"])

    assert result.exit_code == 1
    assert "Scenario path does not exist: scenarios" in result.output
    assert calls == []
