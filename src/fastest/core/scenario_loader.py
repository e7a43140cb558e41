"""Scenario YAML files -> validated Scenario models.

Placeholders may appear anywhere except in ``variables`` itself:
    {{name}}       caller variables, then the scenario's own ``variables``
    {{env.NAME}}   process environment

A string that is exactly one placeholder becomes the variable's value with
its YAML type, so ``args: ["{{row}}"]`` can pass an int to ``at``. Unknown
placeholders are left as written.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Collection, Mapping
from pathlib import Path  # noqa: TC003
from typing import Any

import yaml
from pydantic import ValidationError

from fastest.core.exceptions import ScenarioError
from fastest.core.models import Scenario

logger = logging.getLogger(__name__)

SCENARIO_SUFFIXES = (".yaml", ".yml")
_PLACEHOLDER = re.compile(r"\{\{\s*([\w.]+)\s*\}\}")
_ENV_NAMESPACE = "env."


def load_scenario(path: Path, variables: Mapping[str, Any] | None = None) -> Scenario:
    """Load one scenario file.

    Args:
        path: Scenario YAML file.
        variables: Caller variables; they win over the scenario's own
            ``variables`` defaults.

    Raises:
        ScenarioError: If the file cannot be read, parsed, or validated.
    """
    data = _read_mapping(path)

    defaults = data.get("variables") or {}
    if not isinstance(defaults, dict):
        msg = f"'variables' must be a mapping ({path.name})"
        raise ScenarioError(msg)
    context = {**defaults, **(variables or {})}

    resolved = {
        key: value if key == "variables" else _substitute(value, context)
        for key, value in data.items()
    }
    try:
        return Scenario.model_validate(resolved)
    except ValidationError as e:
        msg = f"Scenario validation failed ({path.name}): {e}"
        raise ScenarioError(msg) from e


def load_scenarios(
    path: Path,
    variables: Mapping[str, Any] | None = None,
    tags: Collection[str] | None = None,
) -> list[Scenario]:
    """Load a scenario file, or every scenario file below a directory.

    Broken files are logged and skipped as long as one file loads.
    With ``tags``, only scenarios carrying at least one of them are kept.

    Raises:
        ScenarioError: If path doesn't exist, holds no scenario files,
            every file fails, or two scenarios share an id.
    """
    if not path.exists():
        msg = f"Scenario path does not exist: {path}"
        raise ScenarioError(msg)

    files = [path] if path.is_file() else find_scenario_files(path)
    if not files:
        msg = f"No scenario YAML files found in: {path}"
        raise ScenarioError(msg)

    scenarios: list[Scenario] = []
    errors: list[str] = []
    for file in files:
        try:
            scenarios.append(load_scenario(file, variables))
        except ScenarioError as e:
            logger.warning("Skipping %s: %s", file, e)
            errors.append(str(e))

    if not scenarios:
        msg = "All scenario files failed to load:\n" + "\n".join(errors)
        raise ScenarioError(msg)

    _check_unique_ids(scenarios)

    if tags:
        wanted = set(tags)
        scenarios = [s for s in scenarios if wanted.intersection(s.tags)]
    return scenarios


def find_scenario_files(directory: Path) -> list[Path]:
    """Scenario YAML files anywhere below directory, sorted by path."""
    return sorted(
        f for f in directory.rglob("*") if f.suffix in SCENARIO_SUFFIXES and f.is_file()
    )


def _read_mapping(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        msg = f"Failed to parse scenario YAML ({path.name}): {e}"
        raise ScenarioError(msg) from e
    except OSError as e:
        msg = f"Failed to read scenario file ({path.name}): {e}"
        raise ScenarioError(msg) from e

    if data is None:
        msg = f"Scenario file is empty: {path.name}"
        raise ScenarioError(msg)
    if not isinstance(data, dict):
        msg = f"Scenario file must be a YAML mapping: {path.name}"
        raise ScenarioError(msg)
    return data


def _check_unique_ids(scenarios: list[Scenario]) -> None:
    seen: set[str] = set()
    for scenario in scenarios:
        if scenario.id in seen:
            msg = f"Duplicate scenario id: {scenario.id}"
            raise ScenarioError(msg)
        seen.add(scenario.id)


def _substitute(data: Any, context: Mapping[str, Any]) -> Any:
    if isinstance(data, str):
        whole = _PLACEHOLDER.fullmatch(data)
        if whole:
            found, value = _lookup(whole.group(1), context)
            return value if found else data
        return _PLACEHOLDER.sub(lambda m: _render(m, context), data)
    if isinstance(data, dict):
        return {key: _substitute(value, context) for key, value in data.items()}
    if isinstance(data, list):
        return [_substitute(item, context) for item in data]
    return data


def _lookup(name: str, context: Mapping[str, Any]) -> tuple[bool, Any]:
    if name.startswith(_ENV_NAMESPACE):
        key = name[len(_ENV_NAMESPACE) :]
        return key in os.environ, os.environ.get(key)
    return name in context, context.get(name)


def _render(match: re.Match[str], context: Mapping[str, Any]) -> str:
    found, value = _lookup(match.group(1), context)
    return str(value) if found else match.group(0)
