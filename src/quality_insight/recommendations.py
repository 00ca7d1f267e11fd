"""Actionable recommendations derived from a finished set of metrics.

Rules are evaluated in a fixed order so the list reads the same on every
run: untested critical code first, then assertion hygiene, structure,
scenario coverage, risky gaps, artifacts, and finally the overall grade.
"""

from __future__ import annotations

from typing import Sequence

from .config import DEFAULT_SCORING, ScoringConfig
from .models import FunctionReport, QualityMetrics, TestFileSummary
from .scenarios import GAP_ERROR, needs_attention

# Scenario percentages below these trigger a recommendation
HAPPY_TARGET = 80.0
EDGE_TARGET = 50.0
ERROR_TARGET = 60.0
RATIO_TARGET = 0.5
LINE_COVERAGE_TARGET = 80.0
BRANCH_COVERAGE_TARGET = 70.0

# Functions or mutants named in a single recommendation
_MAX_NAMED = 3

_NONDETERMINISTIC = ("Time-dependent", "Random")


def _names(items: Sequence[str]) -> str:
    shown = ", ".join(items[:_MAX_NAMED])
    if len(items) > _MAX_NAMED:
        shown += f" and {len(items) - _MAX_NAMED} more"
    return shown


def build_recommendations(
    metrics: QualityMetrics,
    functions: Sequence[FunctionReport],
    test_files: Sequence[TestFileSummary],
    scoring: ScoringConfig = DEFAULT_SCORING,
) -> list[str]:
    recs: list[str] = []

    # Critical code without tests
    if metrics.critical_functions_coverage < 100:
        missing = metrics.critical_functions - metrics.critical_functions_tested
        untested = [
            f.function.name for f in functions if f.function.criticality.is_high_risk and not f.tests
        ]
        recs.append(
            f"Add tests for {missing} untested critical function(s) "
            f"({metrics.critical_functions_coverage:.1f}% covered): {_names(untested)}"
        )

    # Assertion hygiene
    if metrics.total_tests and metrics.avg_assertions_per_test < scoring.min_assertions_per_test:
        recs.append(
            f"Tests average {metrics.avg_assertions_per_test:.1f} assertions; "
            f"aim for at least {scoring.min_assertions_per_test:g} per test"
        )
    if metrics.tests_without_assertions:
        recs.append(f"{metrics.tests_without_assertions} test(s) assert nothing; add explicit expectations")

    # Structure
    if test_files and not any(s.grouping_blocks for s in test_files):
        recs.append("Group related tests into describe/context blocks or test classes")
    if test_files and not any(s.hooks for s in test_files):
        recs.append("Move repeated arrangement into setup/teardown hooks")

    # Scenario coverage
    if functions:
        s = metrics.scenario_coverage
        if s.happy < HAPPY_TARGET:
            recs.append(f"Only {s.happy:.1f}% of functions have a happy-path test with a strong assertion")
        if s.edge < EDGE_TARGET:
            recs.append(f"Only {s.edge:.1f}% of functions have edge-case tests (empty, null, zero, limits)")
        if s.error < ERROR_TARGET:
            recs.append(f"Only {s.error:.1f}% of functions have error-handling tests")

    # Risky gaps
    flagged = [f for f in functions if needs_attention(f.function, f.scenarios)]
    if flagged:
        recs.append(
            f"{len(flagged)} critical/high function(s) have scenario gaps: "
            f"{_names([f.function.name for f in flagged])}"
        )
    unchecked_throws = [
        f"{f.function.name} ({f.function.throws[0]})"
        for f in flagged
        if f.function.throws and GAP_ERROR in f.scenarios.gaps
    ]
    if unchecked_throws:
        recs.append(f"Assert the errors raised by {_names(unchecked_throws)}")
    nondeterministic = [
        f.function.name
        for f in functions
        if f.tests and any(label in f.function.side_effects for label in _NONDETERMINISTIC)
    ]
    if nondeterministic:
        recs.append(f"Control time and randomness in tests of {_names(nondeterministic)}")

    # Test-file ratio
    if metrics.source_files and metrics.test_file_ratio < RATIO_TARGET:
        recs.append(
            f"Test file ratio is {metrics.test_file_ratio:.0%}; target {RATIO_TARGET:.0%} or more"
        )

    # Artifacts
    mutation = metrics.mutation
    if mutation is not None and not mutation.ok:
        recs.append(
            f"Mutation score {mutation.score:.1%} is below {mutation.threshold:.0%}; "
            f"{mutation.survived} mutant(s) survived"
        )
        if mutation.survivors:
            where = [f"{m.file_path}:{m.line} ({m.mutator})" for m in mutation.survivors]
            recs.append(f"Kill surviving mutants at {_names(where)}")
    coverage = metrics.coverage
    if coverage is not None:
        if coverage.lines.total and coverage.lines.pct < LINE_COVERAGE_TARGET:
            recs.append(f"Line coverage is {coverage.lines.pct:.1f}%; target {LINE_COVERAGE_TARGET:.0f}%")
        if coverage.branches.total and coverage.branches.pct < BRANCH_COVERAGE_TARGET:
            recs.append(
                f"Branch coverage is {coverage.branches.pct:.1f}%; target {BRANCH_COVERAGE_TARGET:.0f}%"
            )

    # Overall grade
    if metrics.grade in ("D", "F"):
        recs.append(
            f"Quality score {metrics.quality_score:.1f}/100 is very low; prioritize tests for critical functions"
        )

    return recs
