"""fastest configuration — load / save / merge.

Layers, later wins:
    defaults < YAML file < FASTEST_* environment < overrides (CLI flags)

Environment names split on ``__`` into nested lower-case keys, e.g.
``FASTEST_TIMING__IMPLICIT_WAIT_MS=2000``.
"""

from __future__ import annotations

import functools
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from fastest.core.exceptions import ConfigError
from fastest.core.models import Config

DEFAULT_CONFIG_FILENAME = "fastest.config.yaml"
CONFIG_DIRNAME = ".fastest"
ENV_PREFIX = "FASTEST_"
ENV_DELIMITER = "__"


def load_config(
    config_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Config:
    """Build the effective Config.

    Args:
        config_path: YAML file to read. None searches the working directory
            and its parents (see ``find_config_file``); no file found means
            defaults only.
        overrides: Highest-priority values, nested like the YAML.

    Raises:
        ConfigError: If the file is missing, unreadable, not a mapping, or
            the merged values do not validate.
    """
    path = config_path if config_path is not None else find_config_file()

    layers: list[dict[str, Any]] = []
    if path is not None:
        if not path.is_file():
            msg = f"Config file does not exist: {path}"
            raise ConfigError(msg)
        layers.append(_load_yaml(path))
    layers.append(_collect_env_vars())
    if overrides:
        layers.append(overrides)

    merged = functools.reduce(_deep_merge, layers, {})
    try:
        return Config(**merged)
    except ValidationError as e:
        msg = f"Config validation failed: {e}"
        raise ConfigError(msg) from e


def save_config(config: Config, path: Path) -> None:
    """Write config as YAML, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    text = yaml.safe_dump(
        config.model_dump(mode="json"),
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
    )
    path.write_text(text, encoding="utf-8")


def find_config_file(start: Path | None = None) -> Path | None:
    """Nearest config file from ``start`` (default: cwd) upwards.

    Each directory is checked for ``fastest.config.yaml`` and then
    ``.fastest/fastest.config.yaml``.
    """
    start = start or Path.cwd()
    for directory in (start, *start.parents):
        for candidate in (
            directory / DEFAULT_CONFIG_FILENAME,
            directory / CONFIG_DIRNAME / DEFAULT_CONFIG_FILENAME,
        ):
            if candidate.is_file():
                return candidate
    return None


def _load_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        msg = f"Failed to parse YAML: {path}: {e}"
        raise ConfigError(msg) from e
    except OSError as e:
        msg = f"Failed to read config: {path}: {e}"
        raise ConfigError(msg) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Config file must be a YAML mapping, got {type(data).__name__}: {path}"
        raise ConfigError(msg)
    return data


def _collect_env_vars(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """FASTEST_* variables as a nested dict.

    Names whose first segment is not a Config field are skipped, so other
    FASTEST_* variables (e.g. secrets used by scenarios) do not break
    validation.
    """
    environ = os.environ if environ is None else environ
    result: dict[str, Any] = {}

    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        path = key[len(ENV_PREFIX) :].lower().split(ENV_DELIMITER)
        if path[0] not in Config.model_fields:
            continue

        node = result
        for part in path[:-1]:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        node[path[-1]] = value

    return result


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """New dict: ``override`` merged into ``base``; nested dicts merge, anything else replaces."""
    result = dict(base)
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            result[key] = _deep_merge(current, value)
        else:
            result[key] = value
    return result
