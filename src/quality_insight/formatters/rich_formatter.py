"""Rich terminal formatter for quality reports."""

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..models import CoverageMetric, QualityReport
from .base import BaseFormatter

# Functions listed in the gap table
_TOP_GAPS = 10
_CRITICALITY_ORDER = {"CRITICAL": 0, "HIGH": 1, "MEDIUM": 2, "LOW": 3}


def _grade_label(grade: str) -> str:
    if grade == "A":
        return "[green bold]A[/green bold]"
    elif grade in ("B", "C"):
        return f"[yellow]{grade}[/yellow]"
    else:
        return f"[red bold]{grade}[/red bold]"


def _pct_label(pct: float) -> str:
    if pct >= 80:
        return f"[green]{pct:.1f}%[/green]"
    elif pct >= 50:
        return f"[yellow]{pct:.1f}%[/yellow]"
    else:
        return f"[red]{pct:.1f}%[/red]"


def _metric_label(metric: CoverageMetric) -> str:
    if metric.total == 0:
        return "[dim]n/a[/dim]"
    return f"{_pct_label(metric.pct)} [dim]({metric.covered}/{metric.total})[/dim]"


class RichFormatter(BaseFormatter):
    """Summary panel, scenario table and gap list."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def render(self, report: QualityReport) -> None:
        self._print_summary(report)
        self._print_scenarios(report)
        self._print_artifacts(report)
        self._print_gaps(report)
        self._print_list("Recommendations", report.recommendations, "[green]->[/green]")

    def format(self, report: QualityReport) -> str:
        # Rich output goes directly to console; return empty string
        self.render(report)
        return ""

    # -- private helpers --

    def _print_summary(self, report: QualityReport) -> None:
        m = report.metrics
        summary_text = (
            f"[bold]{report.product}[/bold] ([cyan]{report.language}[/cyan], {report.framework})\n"
            f"Score [bold]{m.quality_score:.1f}[/bold]/100  |  Grade {_grade_label(m.grade)}  |  "
            f"{m.total_functions} functions, {m.total_tests} tests in {m.test_files} files\n"
            f"Critical functions tested: {m.critical_functions_tested}/{m.critical_functions} "
            f"({_pct_label(m.critical_functions_coverage)})"
        )
        self.console.print(Panel(summary_text, title="[bold cyan]Test Quality[/bold cyan]", expand=False))

        b = m.breakdown
        self.console.print(
            f"  critical coverage {b.critical_coverage:.1f}  |  diversity {b.diversity:.1f}  |  "
            f"structure {b.structure:.1f}  |  ratio {b.ratio:.1f}"
        )
        self.console.print()

    def _print_scenarios(self, report: QualityReport) -> None:
        s = report.metrics.scenario_coverage
        table = Table(title="Scenario Coverage", expand=False)
        table.add_column("Scenario", style="white")
        table.add_column("Functions", justify="right")
        for label, pct in (
            ("Happy path", s.happy),
            ("Edge cases", s.edge),
            ("Error handling", s.error),
            ("Side effects", s.side_effects),
        ):
            table.add_row(label, _pct_label(pct))
        table.add_row("[dim]Critical/high matrix[/dim]", _pct_label(report.metrics.scenario_matrix_critical))
        self.console.print(table)
        self.console.print()

    def _print_artifacts(self, report: QualityReport) -> None:
        coverage = report.metrics.coverage
        if coverage is not None:
            self.console.print(
                f"[bold]Coverage[/bold] ({coverage.format}): lines {_metric_label(coverage.lines)}  "
                f"branches {_metric_label(coverage.branches)}  functions {_metric_label(coverage.functions)}"
            )
        mutation = report.metrics.mutation
        if mutation is not None:
            status = "[green]ok[/green]" if mutation.ok else "[red]below threshold[/red]"
            self.console.print(
                f"[bold]Mutation[/bold] ({mutation.tool}): score {mutation.score:.1%} "
                f"({mutation.killed}/{mutation.total_mutants} killed, {mutation.survived} survived)  {status}"
            )
        if coverage is not None or mutation is not None:
            self.console.print()

    def _print_gaps(self, report: QualityReport) -> None:
        flagged = [f for f in report.functions if f.scenarios.gaps]
        if not flagged:
            return
        flagged.sort(key=lambda f: _CRITICALITY_ORDER.get(f.function.criticality.value, 4))

        table = Table(title=f"Top {min(_TOP_GAPS, len(flagged))} Functions With Gaps", expand=True)
        table.add_column("Function", style="yellow", ratio=2)
        table.add_column("Criticality", justify="center", width=11)
        table.add_column("Tests", justify="right", width=6)
        table.add_column("Missing", style="white", ratio=3)
        for entry in flagged[:_TOP_GAPS]:
            fn = entry.function
            table.add_row(
                f"{fn.name} [dim]{fn.file_path}:{fn.start_line}[/dim]",
                fn.criticality.value,
                str(len(entry.tests)),
                ", ".join(entry.scenarios.gaps),
            )
        self.console.print(table)
        self.console.print()

    def _print_list(self, title: str, items, marker: str) -> None:
        if not items:
            return
        self.console.print(f"[bold]{title}:[/bold]")
        for item in items:
            self.console.print(f"  {marker} {item}")
        self.console.print()
