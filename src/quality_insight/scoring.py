"""Quality score composer.

Folds the function inventory, matched tests and per-file structure into a
0-100 score made of four components:

    critical coverage  share of CRITICAL/HIGH functions with any test
    diversity          edge tests, error tests, test doubles, assertion density
    structure          grouping blocks, setup/teardown hooks, no empty tests
    ratio              test files per source file, tiered

Weights and thresholds come from ``ScoringConfig``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from .config import DEFAULT_SCORING, ScoringConfig
from .extraction.cues import DEFAULT_CUES, CueTables
from .logging_config import get_logger
from .models import (
    Coverage,
    FunctionInfo,
    MutationResult,
    QualityMetrics,
    ScenarioMatrix,
    ScoreBreakdown,
    TestFileSummary,
    TestInfo,
)
from .scenarios import critical_scenario_share, scenario_coverage

logger = get_logger(__name__)


def grade_for(score: float, thresholds: Sequence[tuple[str, float]]) -> str:
    """Letter grade for ``score``: first threshold reached, else F."""
    for grade, minimum in thresholds:
        if score >= minimum:
            return grade
    return "F"


def ratio_points(ratio: float, config: ScoringConfig = DEFAULT_SCORING) -> float:
    """Tiered points for the test-file ratio, linear below the lowest tier."""
    for minimum, points in config.ratio_tiers:
        if ratio >= minimum:
            return points
    return max(ratio, 0.0) * config.ratio_max_points


@dataclass
class ScoreComposer:
    config: ScoringConfig = field(default=DEFAULT_SCORING)
    cues: CueTables = field(default=DEFAULT_CUES)

    def compose(
        self,
        functions: Sequence[FunctionInfo],
        matrices: Sequence[ScenarioMatrix],
        matched: Mapping[tuple[str, str], Sequence[TestInfo]],
        test_files: Sequence[TestFileSummary],
        coverage: Optional[Coverage] = None,
        mutation: Optional[MutationResult] = None,
    ) -> QualityMetrics:
        """Build the metrics block of a report.

        ``matrices`` is parallel to ``functions``.
        """
        cfg = self.config
        tests = [t for summary in test_files for t in summary.tests]

        critical = [f for f in functions if f.criticality.is_high_risk]
        critical_tested = [f for f in critical if matched.get(f.key)]
        critical_pct = len(critical_tested) / len(critical) * 100 if critical else 100.0

        total_assertions = sum(len(t.assertions) for t in tests)
        avg_assertions = total_assertions / len(tests) if tests else 0.0
        empty_tests = sum(1 for t in tests if not t.has_assertions)

        # Distinct files that define at least one analyzed function
        source_files = len({f.file_path for f in functions})
        ratio = len(test_files) / source_files if source_files else 0.0

        breakdown = ScoreBreakdown(
            critical_coverage=critical_pct / 100 * cfg.critical_coverage_weight,
            diversity=self._diversity(tests, test_files, avg_assertions),
            structure=self._structure(test_files, empty_tests),
            ratio=ratio_points(ratio, cfg),
        )
        score = round(min(max(breakdown.total, 0.0), 100.0), 1)
        grade = grade_for(score, cfg.grade_thresholds)
        logger.debug(
            f"Score {score} ({grade}): critical={breakdown.critical_coverage:.1f} "
            f"diversity={breakdown.diversity:.1f} structure={breakdown.structure:.1f} ratio={breakdown.ratio:.1f}"
        )

        return QualityMetrics(
            quality_score=score,
            grade=grade,
            breakdown=breakdown,
            scenario_coverage=scenario_coverage(matrices),
            scenario_matrix_critical=critical_scenario_share(functions, matrices),
            total_functions=len(functions),
            critical_functions=len(critical),
            critical_functions_tested=len(critical_tested),
            critical_functions_coverage=critical_pct,
            total_tests=len(tests),
            test_files=len(test_files),
            source_files=source_files,
            test_file_ratio=ratio,
            avg_assertions_per_test=avg_assertions,
            tests_without_assertions=empty_tests,
            coverage=coverage,
            mutation=mutation,
        )

    def _diversity(
        self, tests: Sequence[TestInfo], test_files: Sequence[TestFileSummary], avg_assertions: float
    ) -> float:
        cfg = self.config
        checks = (
            any(self.cues.mentions_boundary(t.name) for t in tests),
            any(t.has_assertion_type("throws") or self.cues.mentions_error(t.name) for t in tests),
            any(t.has_mocks or t.has_spies for t in tests) or any(s.shared_mocks for s in test_files),
            bool(tests) and avg_assertions >= cfg.min_assertions_per_test,
        )
        return sum(cfg.diversity_points for passed in checks if passed)

    def _structure(self, test_files: Sequence[TestFileSummary], empty_tests: int) -> float:
        cfg = self.config
        points = 0.0
        if any(s.grouping_blocks for s in test_files):
            points += cfg.grouping_points
        if any(s.hooks for s in test_files):
            points += cfg.hooks_points
        if empty_tests == 0:
            points += cfg.no_empty_tests_points
        return points
