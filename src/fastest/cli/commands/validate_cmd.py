"""fastest validate — scenario YAML validation."""

from __future__ import annotations

from pathlib import Path

import typer

from fastest.chain.script import check_step_arguments
from fastest.core.exceptions import ScenarioError
from fastest.core.scenario_loader import find_scenario_files, load_scenario


def validate_command(
    path: str = typer.Argument(help="Scenario file or directory path."),
) -> None:
    """Validate scenario YAML files without contacting a server."""
    scenario_path = Path(path)

    if not scenario_path.exists():
        typer.echo(
            typer.style(f"Path does not exist: {path}", fg=typer.colors.RED),
            err=True,
        )
        raise typer.Exit(code=1)

    files = [scenario_path] if scenario_path.is_file() else find_scenario_files(scenario_path)
    if not files:
        typer.echo(
            typer.style(f"No YAML files found in: {path}", fg=typer.colors.RED),
            err=True,
        )
        raise typer.Exit(code=1)

    errors: list[str] = []
    for file in files:
        try:
            scenario = load_scenario(file)
            check_step_arguments(scenario.steps)
        except ScenarioError as e:
            typer.echo(f"  {file.name}: {typer.style('ERROR', fg=typer.colors.RED)} - {e}")
            errors.append(file.name)
            continue
        flavour = " (android)" if scenario.needs_android else ""
        typer.echo(
            f"  {file.name}: {typer.style('OK', fg=typer.colors.GREEN)}"
            f" {scenario.id}, {len(scenario.steps)} step(s){flavour}"
        )

    typer.echo("")
    total = len(files)
    typer.echo(f"Validated {total} file(s): {total - len(errors)} OK, {len(errors)} ERROR")

    if errors:
        raise typer.Exit(code=1)
