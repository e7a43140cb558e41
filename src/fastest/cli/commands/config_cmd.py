"""fastest config — configuration management."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer
import yaml

from fastest.core.config import (
    CONFIG_DIRNAME,
    DEFAULT_CONFIG_FILENAME,
    find_config_file,
    load_config,
    save_config,
)
from fastest.core.exceptions import ConfigError

config_app = typer.Typer(
    name="config",
    help="Configuration management commands.",
    no_args_is_help=True,
)


@config_app.command(name="show")
def config_show(
    config_path: str | None = typer.Option(None, "--config", "-c", help="Config file path."),
) -> None:
    """Show the merged configuration."""
    try:
        config = load_config(config_path=Path(config_path) if config_path else None)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None
    data = config.model_dump(mode="json")
    typer.echo(yaml.dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False))


@config_app.command(name="set")
def config_set(
    key: str = typer.Argument(help="Dotted config key (e.g. timing.implicit_wait_ms)."),
    value: str = typer.Argument(help="Value to set."),
    config_path: str | None = typer.Option(None, "--config", "-c", help="Config file path."),
) -> None:
    """Set a configuration value by dotted key and write the file."""
    path = Path(config_path) if config_path else _local_config_path()
    try:
        config = load_config(
            config_path=path if path.exists() else None,
            overrides=_dotted_key_to_dict(key, value),
        )
        save_config(config, path)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None
    typer.echo(f"Set {key} = {value}")


def _local_config_path() -> Path:
    """Existing config in the working directory (plain or .fastest/), else a new one there."""
    cwd = Path.cwd()
    found = find_config_file(cwd)
    if found is not None and found.parent in (cwd, cwd / CONFIG_DIRNAME):
        return found
    return cwd / DEFAULT_CONFIG_FILENAME


def _dotted_key_to_dict(key: str, value: str) -> dict[str, Any]:
    """'timing.poll_interval_ms' -> {'timing': {'poll_interval_ms': value}}."""
    *parents, leaf = key.split(".")
    result: dict[str, Any] = {leaf: value}
    for part in reversed(parents):
        result = {part: result}
    return result
