"""End-to-end tests for pipeline.py."""

import dataclasses
import json

import pytest

from quality_insight import AnalysisConfig, analyze, run_pipeline
from quality_insight.adapters.typescript import TypeScriptAdapter
from quality_insight.exceptions import AnalysisTimeoutError, InvalidPathError, UnsupportedLanguageError
from quality_insight.formatters import to_json
from quality_insight.models import Criticality
from quality_insight.validation import validate_report


class TestTypeScriptRepository:
    """The vitest fixture: add, parseAmount (critical) and saveTotal (high)."""

    def test_inventory(self, ts_repo):
        report = analyze(ts_repo)
        assert (report.language, report.framework) == ("typescript", "vitest")
        assert report.product == ts_repo.name
        assert [f.function.name for f in report.functions] == ["add", "parseAmount", "saveTotal"]
        assert [f.function.criticality for f in report.functions] == [
            Criticality.LOW,
            Criticality.CRITICAL,
            Criticality.HIGH,
        ]
        assert [t.name for t in report.tests] == [
            "adds two numbers",
            "parses a numeric string",
            "throws on empty input",
        ]

    def test_matching_and_gaps(self, ts_repo):
        report = analyze(ts_repo)
        by_name = {f.function.name: f for f in report.functions}
        assert by_name["add"].tests == ("adds two numbers",)
        assert by_name["parseAmount"].tests == ("parses a numeric string", "throws on empty input")
        assert by_name["saveTotal"].tests == ()
        assert by_name["parseAmount"].scenarios.gaps == ()
        assert "src/math.ts:add: missing error handling" in report.gaps
        assert "src/math.ts:saveTotal: missing side-effect verification" in report.gaps

    def test_metrics(self, ts_repo):
        m = analyze(ts_repo).metrics
        assert m.critical_functions == 2
        assert m.critical_functions_tested == 1
        assert m.critical_functions_coverage == pytest.approx(50.0)
        assert m.total_tests == 3
        assert m.avg_assertions_per_test == pytest.approx(4 / 3)
        assert m.breakdown.critical_coverage == pytest.approx(20.0)
        assert m.breakdown.diversity == pytest.approx(10.0)
        assert m.breakdown.structure == pytest.approx(20.0)
        assert m.breakdown.ratio == pytest.approx(20.0)
        assert m.quality_score == 70.0
        assert m.grade == "C"
        assert m.coverage is None
        assert m.mutation is None

    def test_recommendations_and_patches(self, ts_repo):
        report = analyze(ts_repo)
        assert report.recommendations[0].startswith(
            "Add tests for 1 untested critical function(s) (50.0% covered): saveTotal"
        )
        [patch] = report.patches
        # The conventional file exists, so a sibling is proposed
        assert "+++ b/src/math.gaps.test.ts" in patch
        assert "+import { saveTotal } from './math';" in patch
        assert "+  it.todo('verifies http calls');" in patch

    def test_step_bookkeeping(self, ts_repo):
        result = run_pipeline(ts_repo)
        assert result.steps_executed == [
            "detect",
            "extract",
            "match",
            "scenarios",
            "mocks",
            "score",
            "recommend",
            "patches",
            "validate",
        ]
        assert result.steps_skipped == ["coverage: no artifact found", "mutation: no artifact found"]
        assert result.validation_errors == []
        assert validate_report(result.report) == []

    def test_output_is_reproducible(self, ts_repo):
        first = to_json(analyze(ts_repo))
        second = to_json(analyze(ts_repo, config=AnalysisConfig(workers=1)))
        assert first == second
        assert json.loads(first)["metrics"]["grade"] == "C"


class TestArtifacts:
    def test_discovered_coverage(self, ts_repo):
        (ts_repo / "coverage").mkdir()
        (ts_repo / "coverage/lcov.info").write_text("SF:src/math.ts\nLF:20\nLH:15\nBRF:4\nBRH:1\nend_of_record\n")
        result = run_pipeline(ts_repo)
        coverage = result.report.metrics.coverage
        assert coverage.format == "lcov"
        assert coverage.lines.pct == pytest.approx(75.0)
        assert "coverage" in result.steps_executed
        assert "Branch coverage is 25.0%; target 70%" in result.report.recommendations

    def test_explicit_mutation_file(self, ts_repo):
        report = {"files": {"src/math.ts": {"mutants": [{"status": "Killed"}, {"status": "Survived"}]}}}
        (ts_repo / "stryker.json").write_text(json.dumps(report))
        mutation = analyze(ts_repo, mutation_file="stryker.json").metrics.mutation
        assert (mutation.tool, mutation.killed, mutation.survived) == ("stryker", 1, 1)
        assert not mutation.ok

    def test_unsupported_artifact_is_dropped_with_a_warning(self, ts_repo):
        (ts_repo / "coverage.dat").write_text("nothing useful")
        result = run_pipeline(ts_repo, coverage_file="coverage.dat")
        assert result.report.metrics.coverage is None
        assert any(w.startswith("Coverage omitted: Unsupported coverage format") for w in result.warnings)
        assert result.report.warnings == tuple(result.warnings)

    def test_missing_explicit_artifact(self, ts_repo):
        result = run_pipeline(ts_repo, mutation_file="reports/absent.json")
        assert result.report.metrics.mutation is None
        assert any(w.startswith("Mutation results omitted: Cannot access file") for w in result.warnings)

    def test_skipped_steps(self, ts_repo):
        result = run_pipeline(ts_repo, skip_coverage=True, skip_mocks=True, generate_patches=False)
        assert "coverage: disabled" in result.steps_skipped
        assert "mocks: disabled" in result.steps_skipped
        assert "patches: disabled" in result.steps_skipped
        assert result.report.patches == ()

    def test_ruby_has_no_mutation_step(self, make_repo):
        root = make_repo({"Gemfile": "gem 'rspec'\n", "lib/cart.rb": "class Cart\n  def total\n    0\n  end\nend\n"})
        result = run_pipeline(root)
        assert result.report.language == "ruby"
        assert "mutation: not available" in result.steps_skipped


class TestExtractionCapabilities:
    def _without(self, monkeypatch, **missing):
        capabilities = TypeScriptAdapter.capabilities.fget
        monkeypatch.setattr(
            TypeScriptAdapter,
            "capabilities",
            property(lambda adapter: dataclasses.replace(capabilities(adapter), **missing)),
        )

    def test_without_test_extraction(self, ts_repo, monkeypatch):
        self._without(monkeypatch, tests=None)
        result = run_pipeline(ts_repo)
        assert "extract tests: not available" in result.steps_skipped
        assert [f.function.name for f in result.report.functions] == ["add", "parseAmount", "saveTotal"]
        assert result.report.tests == ()
        assert result.report.metrics.total_tests == 0

    def test_without_function_extraction(self, ts_repo, monkeypatch):
        self._without(monkeypatch, functions=None)
        result = run_pipeline(ts_repo)
        assert "extract functions: not available" in result.steps_skipped
        assert result.report.functions == ()
        assert result.report.metrics.total_tests == 3


class TestPythonRepository:
    def test_report(self, py_repo):
        report = analyze(py_repo)
        assert (report.language, report.framework) == ("python", "pytest")
        by_name = {f.function.name: f for f in report.functions}
        assert set(by_name) == {"validate_account", "balance"}
        assert by_name["balance"].scenarios.gaps == ("missing error handling",)
        assert report.metrics.quality_score == 40.0
        assert report.metrics.grade == "F"

    def test_patch(self, py_repo):
        [patch] = analyze(py_repo).patches
        assert "+++ b/tests/test_accounts_gaps.py" in patch
        assert "+from ledger.accounts import validate_account" in patch
        assert "+def test_validate_account_throws_valueerror_on_invalid_input():" in patch

    def test_include_private(self, py_repo):
        report = analyze(py_repo, include_private=True)
        assert "_round" in [f.function.name for f in report.functions]


class TestFailures:
    def test_missing_path(self, tmp_path):
        with pytest.raises(InvalidPathError):
            run_pipeline(tmp_path / "absent")

    def test_file_path(self, tmp_path):
        path = tmp_path / "file.txt"
        path.write_text("x")
        with pytest.raises(InvalidPathError) as exc_info:
            run_pipeline(path)
        assert exc_info.value.reason == "not a directory"

    def test_unknown_language(self, ts_repo):
        with pytest.raises(UnsupportedLanguageError):
            run_pipeline(ts_repo, language="cobol")

    def test_deadline(self, ts_repo):
        """An exceeded deadline fails the run instead of returning a partial report."""
        with pytest.raises(AnalysisTimeoutError):
            run_pipeline(ts_repo, deadline_seconds=1e-6)

    def test_undetected_language_falls_back(self, tmp_path):
        result = run_pipeline(tmp_path)
        assert result.report.language == "typescript"
        assert result.report.framework == "unknown"
        assert "No language detected; falling back to typescript" in result.warnings
        assert result.report.metrics.total_functions == 0
