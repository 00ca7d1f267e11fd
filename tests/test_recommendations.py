"""Tests for recommendations.py - ordered, actionable advice."""

from quality_insight.models import (
    Coverage,
    CoverageMetric,
    Criticality,
    FunctionInfo,
    FunctionReport,
    MutationResult,
    QualityMetrics,
    ScenarioCoverage,
    ScoreBreakdown,
    SurvivingMutant,
    TestFileSummary,
)
from quality_insight.recommendations import build_recommendations
from quality_insight.scenarios import ScenarioAnalyzer

HEALTHY_FILES = [TestFileSummary("src/a.test.ts", grouping_blocks=1, hooks=1)]


def _metrics(**kwargs):
    values = dict(
        quality_score=95.0,
        grade="A",
        breakdown=ScoreBreakdown(),
        scenario_coverage=ScenarioCoverage(100.0, 100.0, 100.0, 100.0),
        critical_functions_coverage=100.0,
        total_tests=4,
        avg_assertions_per_test=2.5,
        source_files=2,
        test_file_ratio=1.0,
    )
    values.update(kwargs)
    return QualityMetrics(**values)


def _report(name, criticality, tests=(), throws=()):
    fn = FunctionInfo(
        name=name,
        file_path="src/a.ts",
        start_line=1,
        end_line=2,
        params=("x",),
        criticality=criticality,
        throws=throws,
    )
    return FunctionReport(fn, ScenarioAnalyzer().analyze(fn, []), tests)


class TestRecommendations:
    def test_healthy_suite_has_nothing_to_say(self):
        assert build_recommendations(_metrics(), [], HEALTHY_FILES) == []

    def test_untested_critical_functions_come_first(self):
        functions = [
            _report("parseAmount", Criticality.CRITICAL, tests=("parses",)),
            _report("saveTotal", Criticality.HIGH),
        ]
        metrics = _metrics(critical_functions=2, critical_functions_tested=1, critical_functions_coverage=50.0)
        recs = build_recommendations(metrics, functions, HEALTHY_FILES)
        assert recs[0] == "Add tests for 1 untested critical function(s) (50.0% covered): saveTotal"

    def test_long_name_lists_are_truncated(self):
        functions = [_report(f"parse{i}", Criticality.CRITICAL) for i in range(5)]
        metrics = _metrics(critical_functions=5, critical_functions_coverage=0.0)
        recs = build_recommendations(metrics, functions, HEALTHY_FILES)
        assert recs[0].endswith(": parse0, parse1, parse2 and 2 more")

    def test_assertion_hygiene(self):
        metrics = _metrics(avg_assertions_per_test=1.2, tests_without_assertions=2)
        recs = build_recommendations(metrics, [], HEALTHY_FILES)
        assert recs == [
            "Tests average 1.2 assertions; aim for at least 2 per test",
            "2 test(s) assert nothing; add explicit expectations",
        ]

    def test_structure(self):
        recs = build_recommendations(_metrics(), [], [TestFileSummary("src/a.test.ts")])
        assert recs == [
            "Group related tests into describe/context blocks or test classes",
            "Move repeated arrangement into setup/teardown hooks",
        ]

    def test_scenario_gaps_and_unchecked_errors(self):
        functions = [_report("parseAmount", Criticality.CRITICAL, throws=("RangeError",))]
        metrics = _metrics(scenario_coverage=ScenarioCoverage(0.0, 0.0, 0.0, 0.0))
        recs = build_recommendations(metrics, functions, HEALTHY_FILES)
        assert "Only 0.0% of functions have error-handling tests" in recs
        assert "1 critical/high function(s) have scenario gaps: parseAmount" in recs
        assert "Assert the errors raised by parseAmount (RangeError)" in recs

    def test_low_test_file_ratio(self):
        recs = build_recommendations(_metrics(test_file_ratio=0.25), [], HEALTHY_FILES)
        assert recs == ["Test file ratio is 25%; target 50% or more"]

    def test_failed_mutation_run(self):
        survivor = SurvivingMutant("src/a.ts", 4, "ArithmeticOperator")
        mutation = MutationResult(tool="stryker", killed=1, survived=3, threshold=0.7, survivors=(survivor,))
        recs = build_recommendations(_metrics(mutation=mutation), [], HEALTHY_FILES)
        assert recs == [
            "Mutation score 25.0% is below 70%; 3 mutant(s) survived",
            "Kill surviving mutants at src/a.ts:4 (ArithmeticOperator)",
        ]

    def test_low_coverage(self):
        coverage = Coverage(
            format="lcov",
            lines=CoverageMetric.from_counts(10, 5),
            branches=CoverageMetric.from_counts(10, 9),
        )
        recs = build_recommendations(_metrics(coverage=coverage), [], HEALTHY_FILES)
        assert recs == ["Line coverage is 50.0%; target 80%"]

    def test_low_grade_comes_last(self):
        recs = build_recommendations(
            _metrics(quality_score=41.5, grade="F", test_file_ratio=0.1), [], HEALTHY_FILES
        )
        assert recs[-1].startswith("Quality score 41.5/100 is very low")
        assert len(recs) == 2
