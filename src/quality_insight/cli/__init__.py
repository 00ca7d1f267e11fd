"""CLI entry point: registers all subcommands."""

from typing import Optional

import typer

from .. import __version__
from ._common import console

app = typer.Typer(
    name="quality-insight",
    help="Quality Insight - Polyglot Test-Quality Analyzer",
    add_completion=False,
    rich_markup_mode="rich",
)


@app.callback(invoke_without_command=True, no_args_is_help=True)
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        help="Show version and exit",
        is_eager=True,
    ),
):
    """
    Measure how well a repository's tests exercise its code.

    [bold cyan]Examples:[/bold cyan]

      quality-insight analyze .

      quality-insight analyze ./service --coverage coverage.xml --json

      quality-insight analyze . --fail-under 70
    """
    if version:
        console.print(
            f"[bold cyan]Quality Insight[/bold cyan] version [green]{__version__}[/green]"
        )
        raise typer.Exit(0)


# Import subcommands to register them
from .analyze import analyze as _analyze  # noqa: F401, E402
