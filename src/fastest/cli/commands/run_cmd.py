"""fastest run — execute scenario files against the configured server."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer

from fastest.chain.script import run_scenario
from fastest.core.config import load_config
from fastest.core.exceptions import FastestError
from fastest.core.models import ScenarioResult
from fastest.core.scenario_loader import load_scenarios


def run_command(
    scenarios_path: str | None = typer.Argument(
        None, help="Scenario file or directory path (default: config scenarios_dir)."
    ),
    config_path: str | None = typer.Option(
        None, "--config", "-c", help="Config file path."
    ),
    server_url: str | None = typer.Option(
        None, "--server", "-s", help="Override the automation server URL."
    ),
    tags: list[str] | None = typer.Option(
        None, "--tag", "-t", help="Only run scenarios with this tag (repeatable)."
    ),
    var: list[str] | None = typer.Option(
        None, "--var", help="Scenario variable as NAME=VALUE (repeatable)."
    ),
) -> None:
    """Run test scenarios."""
    variables = _parse_vars(var or [])
    try:
        results = asyncio.run(_run(scenarios_path, config_path, server_url, tags, variables))
    except FastestError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None

    passed = sum(1 for r in results if r.passed)
    failed = len(results) - passed
    typer.echo(f"\nSummary: {passed} passed, {failed} failed, {len(results)} total")

    if failed > 0:
        raise typer.Exit(code=1)


async def _run(
    scenarios_path: str | None,
    config_path: str | None,
    server_url: str | None,
    tags: list[str] | None,
    variables: dict[str, str],
) -> list[ScenarioResult]:
    """Run scenarios one after another, each on its own session."""
    overrides = {"server_url": server_url} if server_url else None
    config = load_config(
        config_path=Path(config_path) if config_path else None, overrides=overrides
    )
    path = Path(scenarios_path) if scenarios_path else Path(config.scenarios_dir)
    scenarios = load_scenarios(path, variables, tags)
    if not scenarios:
        typer.echo("No scenarios match the given tags.")

    results: list[ScenarioResult] = []
    for scenario in scenarios:
        typer.echo(f"\nScenario: {scenario.id} — {scenario.name}")
        result = await run_scenario(config, scenario)
        results.append(result)

        if result.passed:
            status_str = typer.style("PASSED", fg=typer.colors.GREEN)
        else:
            status_str = typer.style("FAILED", fg=typer.colors.RED)
        typer.echo(
            f"  {status_str} {result.total_steps} step(s) ({result.duration_ms:.0f}ms)"
        )
        if result.error_message:
            typer.echo(f"    Error: {result.error_message}")

    return results


def _parse_vars(pairs: list[str]) -> dict[str, str]:
    """['user=alice'] -> {'user': 'alice'}."""
    variables: dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            msg = f"Expected NAME=VALUE, got {pair!r}"
            raise typer.BadParameter(msg, param_hint="--var")
        variables[name] = value
    return variables
