"""Invariant checks over a finished ``QualityReport``.

Each check returns human-readable error strings; an empty list means the
report is internally consistent. Nothing here raises.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

from .config import DEFAULT_SCORING
from .extraction.cues import DEFAULT_CUES, CueTables
from .models import Coverage, CoverageMetric, MutationResult, QualityReport
from .scenarios import ScenarioAnalyzer
from .scoring import grade_for

_TOLERANCE = 1e-6


def validate_metric(name: str, metric: CoverageMetric) -> list[str]:
    errors = []
    if not 0 <= metric.covered <= metric.total:
        errors.append(f"{name}: covered={metric.covered} outside [0, total={metric.total}]")
    expected = metric.covered / metric.total * 100 if metric.total > 0 else 0.0
    if not math.isclose(metric.pct, expected, abs_tol=_TOLERANCE):
        errors.append(f"{name}: pct={metric.pct} but counts give {expected}")
    return errors


def validate_coverage(coverage: Coverage) -> list[str]:
    errors: list[str] = []
    for field in ("lines", "functions", "branches", "statements"):
        errors.extend(validate_metric(f"coverage.{field}", getattr(coverage, field)))
    return errors


def validate_mutation(result: MutationResult) -> list[str]:
    errors = []
    buckets = result.killed + result.survived + result.timeout + result.no_coverage
    if result.total_mutants != buckets:
        errors.append(f"mutation: total_mutants={result.total_mutants} but buckets sum to {buckets}")
    expected = result.killed / buckets if buckets > 0 else 0.0
    if not math.isclose(result.score, expected, abs_tol=_TOLERANCE):
        errors.append(f"mutation: score={result.score} but buckets give {expected}")
    if result.ok != (result.score >= result.threshold):
        errors.append(f"mutation: ok={result.ok} inconsistent with threshold {result.threshold}")
    return errors


def validate_report(
    report: QualityReport,
    cues: CueTables = DEFAULT_CUES,
    grade_thresholds: Optional[Sequence[tuple[str, float]]] = None,
) -> list[str]:
    """Check every cross-field invariant of a report."""
    thresholds = grade_thresholds or DEFAULT_SCORING.grade_thresholds
    metrics = report.metrics
    errors: list[str] = []

    if not 0 <= metrics.quality_score <= 100:
        errors.append(f"quality_score={metrics.quality_score} outside [0, 100]")
    grade = grade_for(metrics.quality_score, thresholds)
    if metrics.grade != grade:
        errors.append(f"grade={metrics.grade} but score {metrics.quality_score} maps to {grade}")
    if abs(metrics.breakdown.total - metrics.quality_score) > 0.05 + _TOLERANCE:
        errors.append(
            f"breakdown sums to {metrics.breakdown.total:.2f} but quality_score is {metrics.quality_score}"
        )

    for name in ("happy", "edge", "error", "side_effects"):
        pct = getattr(metrics.scenario_coverage, name)
        if not 0 <= pct <= 100:
            errors.append(f"scenario_coverage.{name}={pct} outside [0, 100]")

    if metrics.coverage is not None:
        errors.extend(validate_coverage(metrics.coverage))
    if metrics.mutation is not None:
        errors.extend(validate_mutation(metrics.mutation))

    analyzer = ScenarioAnalyzer(cues)
    for entry in report.functions:
        m = entry.scenarios
        expected = analyzer.gaps(entry.function, m.happy, m.error, m.edge, m.side_effects)
        if m.gaps != expected:
            errors.append(
                f"{entry.function.file_path}:{entry.function.name}: gaps {list(m.gaps)} "
                f"do not follow from the matrix (expected {list(expected)})"
            )
    return errors
