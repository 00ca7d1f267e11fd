"""Scenario matrix: which kinds of behavior a function's tests exercise.

The matrix is a pure function of a ``FunctionInfo`` and its matched tests.
Gaps are derived from the four flags plus the function's own signature, in
a fixed order:

    1. no happy path                                -> always a gap
    2. no error test, function async or has params  -> gap
    3. no edge test, function has params            -> gap
    4. no side-effect test, name is a mutating verb -> gap

A zero-argument synchronous getter is therefore only ever asked for a
happy-path test.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .extraction.cues import DEFAULT_CUES, CueTables
from .models import Criticality, FunctionInfo, ScenarioCoverage, ScenarioMatrix, TestInfo

GAP_HAPPY = "missing happy path"
GAP_ERROR = "missing error handling"
GAP_EDGE = "missing edge cases"
GAP_SIDE_EFFECTS = "missing side-effect verification"

SCENARIOS = ("happy", "edge", "error", "side_effects")


@dataclass
class ScenarioAnalyzer:
    cues: CueTables = field(default=DEFAULT_CUES)

    def analyze(self, function: FunctionInfo, tests: Sequence[TestInfo]) -> ScenarioMatrix:
        happy = any(self._has_happy_path(t) for t in tests)
        error = any(t.has_assertion_type("throws") or self.cues.mentions_error(t.name) for t in tests)
        edge = any(self.cues.mentions_boundary(t.name) for t in tests)
        side_effects = any(
            (t.has_mocks or t.has_spies) and t.has_assertion_type("called_with") for t in tests
        )
        return ScenarioMatrix(
            function_name=function.name,
            file_path=function.file_path,
            happy=happy,
            error=error,
            edge=edge,
            side_effects=side_effects,
            gaps=self.gaps(function, happy, error, edge, side_effects),
        )

    def gaps(
        self, function: FunctionInfo, happy: bool, error: bool, edge: bool, side_effects: bool
    ) -> tuple[str, ...]:
        gaps = []
        if not happy:
            gaps.append(GAP_HAPPY)
        if not error and (function.is_async or function.params):
            gaps.append(GAP_ERROR)
        if not edge and function.params:
            gaps.append(GAP_EDGE)
        if not side_effects and self.cues.is_side_effect_verb(function.name):
            gaps.append(GAP_SIDE_EFFECTS)
        return tuple(gaps)

    def _has_happy_path(self, test: TestInfo) -> bool:
        # A bare call or a truthiness check does not pin down the result
        return any(a.type == "equality" and not a.is_weak for a in test.assertions)


def scenario_coverage(matrices: Sequence[ScenarioMatrix]) -> ScenarioCoverage:
    """Percentage of functions covering each scenario."""
    if not matrices:
        return ScenarioCoverage()
    total = len(matrices)
    return ScenarioCoverage(
        **{name: sum(getattr(m, name) for m in matrices) / total * 100 for name in SCENARIOS}
    )


def critical_scenario_share(
    functions: Sequence[FunctionInfo], matrices: Sequence[ScenarioMatrix]
) -> float:
    """Share of the four scenarios covered across CRITICAL/HIGH functions, in percent."""
    risky = [m for f, m in zip(functions, matrices) if f.criticality.is_high_risk]
    if not risky:
        return 0.0
    covered = sum(getattr(m, name) for m in risky for name in SCENARIOS)
    return covered / (len(risky) * len(SCENARIOS)) * 100


def needs_attention(function: FunctionInfo, matrix: ScenarioMatrix) -> bool:
    return function.criticality in (Criticality.CRITICAL, Criticality.HIGH) and bool(matrix.gaps)
