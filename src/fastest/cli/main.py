"""fastest CLI entry point."""

import logging

import typer

app = typer.Typer(
    name="fastest",
    help="fastest — fluent UI test chains for Appium servers",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    if value:
        from fastest import __version__

        typer.echo(f"fastest {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log requests and poll retries."),
) -> None:
    """fastest — fluent UI test chains for Appium servers."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )


# -- Register commands --------------------------------------------------------

from fastest.cli.commands.config_cmd import config_app  # noqa: E402
from fastest.cli.commands.run_cmd import run_command  # noqa: E402
from fastest.cli.commands.validate_cmd import validate_command  # noqa: E402

app.command(name="run")(run_command)
app.command(name="validate")(validate_command)
app.add_typer(config_app, name="config")
