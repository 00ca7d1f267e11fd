"""``analyze`` command: run the pipeline and print the report."""

from pathlib import Path
from typing import Optional

import typer

from ..exceptions import QualityInsightError
from ..formatters import get_formatter
from ..formatters.rich_formatter import RichFormatter
from ..logging_config import setup_logging
from ..pipeline import run_pipeline
from . import app
from ._common import console, resolve_config


@app.command()
def analyze(
    path: Path = typer.Argument(
        Path("."),
        help="Repository root to analyze",
        exists=True,
        file_okay=False,
        dir_okay=True,
        readable=True,
    ),
    product: Optional[str] = typer.Option(
        None,
        "--product",
        "-p",
        help="Product name shown on the report (default: directory name)",
    ),
    language: Optional[str] = typer.Option(
        None,
        "--language",
        "-l",
        help="Skip detection: typescript | python | go | java | ruby",
    ),
    coverage: Optional[Path] = typer.Option(
        None,
        "--coverage",
        help="Coverage report to normalize (default: auto-discover)",
        dir_okay=False,
    ),
    mutation: Optional[Path] = typer.Option(
        None,
        "--mutation",
        help="Mutation testing output to aggregate (default: auto-discover)",
        dir_okay=False,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    workers: Optional[int] = typer.Option(
        None,
        "-w",
        "--workers",
        help="Parallel workers (default: auto-detect)",
        min=1,
        max=32,
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Fail the run if analysis takes longer than this many seconds",
        min=0.001,
    ),
    no_patches: bool = typer.Option(
        False,
        "--no-patches",
        help="Do not propose test skeletons",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
    fail_under: Optional[float] = typer.Option(
        None,
        "--fail-under",
        help="Exit 1 if the quality score is below this value",
        min=0,
        max=100,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors",
    ),
):
    """
    Score a repository's tests: critical-function coverage, scenario gaps,
    coverage and mutation artifacts.

    [bold cyan]Examples:[/bold cyan]

      quality-insight analyze .

      quality-insight analyze ./api --language go --coverage coverage.out

      quality-insight analyze . --json --fail-under 80
    """
    logger = setup_logging("quiet" if quiet else "verbose" if verbose else "normal")

    try:
        settings = resolve_config(
            config=config,
            workers=workers,
            timeout=timeout,
            coverage=coverage,
            mutation=mutation,
            no_patches=no_patches,
            verbose=verbose,
            quiet=quiet,
        )
        setup_logging(settings.verbosity)
        result = run_pipeline(path, product=product, language=language, config=settings)
        report = result.report

        if json_output:
            get_formatter("json").render(report)
        else:
            RichFormatter(console).render(report)
            if verbose and result.steps_skipped:
                console.print(f"[dim]Skipped: {'; '.join(result.steps_skipped)}[/dim]")

        if fail_under is not None and report.metrics.quality_score < fail_under:
            if not json_output:
                console.print(
                    f"[red]Quality score {report.metrics.quality_score:.1f} is below {fail_under:g}[/red]"
                )
            raise typer.Exit(1)

    except typer.Exit:
        raise

    except QualityInsightError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    except KeyboardInterrupt:
        logger.info("Analysis interrupted by user")
        console.print("\n[yellow]Analysis interrupted[/yellow]")
        raise typer.Exit(130)

    except Exception as e:
        logger.exception("Unexpected error during analysis")
        console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)
