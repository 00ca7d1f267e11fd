"""Tests for coverage/parsers.py - every native format onto the canonical model."""

import json

import pytest

from quality_insight.coverage import (
    parse_clover,
    parse_cobertura,
    parse_coveragepy,
    parse_go,
    parse_istanbul,
    parse_jacoco,
    parse_lcov,
    parse_simplecov,
)
from quality_insight.models import CoverageMetric
from quality_insight.validation import validate_coverage

GO_PROFILE = """\
mode: set
github.com/acme/calc/add.go:3.24,5.2 2 1
github.com/acme/calc/add.go:7.30,9.2 1 1
github.com/acme/calc/add.go:11.20,13.2 2 0
"""

COBERTURA_WITH_COUNTS = """\
<?xml version="1.0" ?>
<coverage version="7.4" timestamp="1700000000" lines-valid="200" lines-covered="150"
          line-rate="0.75" branches-valid="40" branches-covered="30" branch-rate="0.75">
  <packages>
    <package name="app" line-rate="0.75" branch-rate="0.75">
      <classes>
        <class name="calc.py" filename="app/calc.py" line-rate="0.75">
          <methods>
            <method name="add" signature="" line-rate="1"><lines><line number="1" hits="3"/></lines></method>
            <method name="sub" signature="" line-rate="0"><lines><line number="5" hits="0"/></lines></method>
          </methods>
          <lines>
            <line number="1" hits="3"/>
            <line number="5" hits="0"/>
          </lines>
        </class>
      </classes>
    </package>
  </packages>
</coverage>
"""

COBERTURA_RATE_ONLY = """\
<coverage line-rate="0.85" lines-valid="200" branch-rate="0.5" branches-valid="10">
  <packages/>
</coverage>
"""

COBERTURA_LINES_ONLY = """\
<coverage version="1.9">
  <packages>
    <package name="src">
      <classes>
        <class name="Math" filename="src/math.ts">
          <lines>
            <line number="1" hits="4"/>
            <line number="2" hits="0"/>
            <line number="3" hits="1" branch="true" condition-coverage="50% (1/2)"/>
            <line number="4" hits="2"/>
          </lines>
        </class>
      </classes>
    </package>
  </packages>
</coverage>
"""

JACOCO_XML = """\
<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<!DOCTYPE report PUBLIC "-//JACOCO//DTD Report 1.1//EN" "report.dtd">
<report name="calc">
  <sessioninfo id="host-1" start="1700000000000" dump="1700000001000"/>
  <package name="com/example">
    <counter type="LINE" missed="10" covered="30"/>
  </package>
  <counter type="INSTRUCTION" missed="20" covered="80"/>
  <counter type="BRANCH" missed="4" covered="6"/>
  <counter type="LINE" missed="10" covered="30"/>
  <counter type="METHOD" missed="1" covered="9"/>
  <counter type="CLASS" missed="0" covered="2"/>
</report>
"""

CLOVER_XML = """\
<?xml version="1.0" encoding="UTF-8"?>
<coverage generated="1700000000" clover="3.2.0">
  <project timestamp="1700000000" name="All files">
    <metrics statements="50" coveredstatements="40" conditionals="10" coveredconditionals="5"
             methods="8" coveredmethods="6" elements="68" coveredelements="51" files="2" loc="120" ncloc="100"/>
  </project>
</coverage>
"""

LCOV_INFO = """\
TN:
SF:src/math.ts
FN:1,add
FNDA:3,add
FNF:2
FNH:1
DA:1,3
DA:2,0
LF:10
LH:8
BRF:4
BRH:2
end_of_record
SF:src/io.ts
FNF:1
FNH:1
LF:5
LH:5
BRF:0
BRH:0
end_of_record
"""


def _assert_consistent(coverage):
    assert validate_coverage(coverage) == []


class TestGoProfile:
    def test_statement_counts(self):
        coverage = parse_go(GO_PROFILE)
        assert coverage.format == "go"
        assert coverage.statements.total == 5
        assert coverage.statements.covered == 3
        assert coverage.statements.pct == pytest.approx(60.0)
        assert coverage.lines == coverage.statements

    def test_no_function_or_branch_data(self):
        coverage = parse_go(GO_PROFILE)
        assert coverage.functions == CoverageMetric()
        assert coverage.branches == CoverageMetric()

    def test_merged_profiles_count_blocks_once(self):
        profile = GO_PROFILE + "github.com/acme/calc/add.go:11.20,13.2 2 4\n"
        coverage = parse_go(profile)
        assert coverage.statements.total == 5
        assert coverage.statements.covered == 5

    def test_malformed_lines_are_skipped(self):
        coverage = parse_go(GO_PROFILE + "garbage line\n")
        assert coverage.statements.total == 5


class TestCobertura:
    def test_root_counts(self):
        coverage = parse_cobertura(COBERTURA_WITH_COUNTS)
        assert (coverage.lines.total, coverage.lines.covered) == (200, 150)
        assert coverage.lines.pct == pytest.approx(75.0)
        assert (coverage.branches.total, coverage.branches.covered) == (40, 30)
        assert (coverage.functions.total, coverage.functions.covered) == (2, 1)
        _assert_consistent(coverage)

    def test_rates_are_scaled_to_percent(self):
        """line-rate is a [0, 1] fraction; pct is always on [0, 100]."""
        coverage = parse_cobertura(COBERTURA_RATE_ONLY)
        assert (coverage.lines.total, coverage.lines.covered) == (200, 170)
        assert coverage.lines.pct == pytest.approx(85.0)
        assert coverage.branches.pct == pytest.approx(50.0)
        assert 0 <= coverage.lines.pct <= 100
        _assert_consistent(coverage)

    def test_falls_back_to_line_elements(self):
        coverage = parse_cobertura(COBERTURA_LINES_ONLY)
        assert (coverage.lines.total, coverage.lines.covered) == (4, 3)
        assert (coverage.branches.total, coverage.branches.covered) == (2, 1)
        _assert_consistent(coverage)

    def test_unparsable_xml_degrades_to_zero(self):
        coverage = parse_cobertura("<coverage")
        assert coverage.format == "cobertura"
        assert coverage.lines == CoverageMetric()


class TestJacoco:
    def test_report_level_counters(self):
        coverage = parse_jacoco(JACOCO_XML)
        assert (coverage.lines.total, coverage.lines.covered) == (40, 30)
        assert (coverage.branches.total, coverage.branches.covered) == (10, 6)
        assert (coverage.functions.total, coverage.functions.covered) == (10, 9)
        assert (coverage.statements.total, coverage.statements.covered) == (100, 80)
        _assert_consistent(coverage)

    def test_package_counters_when_no_report_totals(self):
        xml = (
            '<report name="x">'
            '<package name="a"><counter type="LINE" missed="1" covered="3"/></package>'
            '<package name="b"><counter type="LINE" missed="3" covered="1"/></package>'
            "</report>"
        )
        coverage = parse_jacoco(xml)
        assert (coverage.lines.total, coverage.lines.covered) == (8, 4)

    def test_malformed_counter_zeroes_its_dimension(self):
        xml = '<report name="x"><counter type="LINE" missed="x" covered="3"/></report>'
        assert parse_jacoco(xml).lines == CoverageMetric()


class TestClover:
    def test_project_metrics(self):
        coverage = parse_clover(CLOVER_XML)
        assert (coverage.lines.total, coverage.lines.covered) == (68, 51)
        assert (coverage.branches.total, coverage.branches.covered) == (10, 5)
        assert (coverage.functions.total, coverage.functions.covered) == (8, 6)
        assert (coverage.statements.total, coverage.statements.covered) == (50, 40)
        _assert_consistent(coverage)


class TestLcov:
    def test_sums_sections(self):
        coverage = parse_lcov(LCOV_INFO)
        assert (coverage.lines.total, coverage.lines.covered) == (15, 13)
        assert (coverage.functions.total, coverage.functions.covered) == (3, 2)
        assert (coverage.branches.total, coverage.branches.covered) == (4, 2)
        _assert_consistent(coverage)

    def test_da_records_without_summaries(self):
        coverage = parse_lcov("SF:a.js\nDA:1,1\nDA:2,0\nDA:3,5\nend_of_record\n")
        assert (coverage.lines.total, coverage.lines.covered) == (3, 2)


class TestIstanbul:
    def test_summary(self):
        summary = {
            "total": {
                "lines": {"total": 10, "covered": 8, "skipped": 0, "pct": 80},
                "statements": {"total": 12, "covered": 9, "skipped": 0, "pct": 75},
                "functions": {"total": 4, "covered": 4, "skipped": 0, "pct": 100},
                "branches": {"total": 0, "covered": 0, "skipped": 0, "pct": "Unknown"},
            }
        }
        coverage = parse_istanbul(json.dumps(summary))
        assert coverage.lines.pct == pytest.approx(80.0)
        assert coverage.functions.pct == pytest.approx(100.0)
        assert coverage.branches == CoverageMetric()
        _assert_consistent(coverage)

    def test_final_json(self):
        final = {
            "/repo/src/math.ts": {
                "path": "/repo/src/math.ts",
                "statementMap": {
                    "0": {"start": {"line": 1, "column": 0}, "end": {"line": 1, "column": 10}},
                    "1": {"start": {"line": 2, "column": 0}, "end": {"line": 2, "column": 10}},
                    "2": {"start": {"line": 2, "column": 12}, "end": {"line": 2, "column": 20}},
                },
                "s": {"0": 1, "1": 0, "2": 3},
                "f": {"0": 1, "1": 0},
                "b": {"0": [1, 0]},
            }
        }
        coverage = parse_istanbul(json.dumps(final))
        assert (coverage.statements.total, coverage.statements.covered) == (3, 2)
        assert (coverage.lines.total, coverage.lines.covered) == (2, 2)
        assert (coverage.functions.total, coverage.functions.covered) == (2, 1)
        assert (coverage.branches.total, coverage.branches.covered) == (2, 1)


class TestJsonFormats:
    def test_coveragepy(self):
        report = {
            "meta": {"version": "7.4.0"},
            "files": {},
            "totals": {
                "covered_lines": 90,
                "num_statements": 120,
                "percent_covered": 75.0,
                "missing_lines": 30,
                "excluded_lines": 4,
                "num_branches": 20,
                "covered_branches": 15,
            },
        }
        coverage = parse_coveragepy(json.dumps(report))
        assert (coverage.lines.total, coverage.lines.covered, coverage.lines.skipped) == (120, 90, 4)
        assert coverage.branches.pct == pytest.approx(75.0)

    def test_simplecov_resultset_merges_suites(self):
        resultset = {
            "RSpec": {"coverage": {"/app/lib/cart.rb": {"lines": [1, 0, None, 0]}}, "timestamp": 1},
            "Minitest": {"coverage": {"/app/lib/cart.rb": {"lines": [0, 2, None, 0]}}, "timestamp": 1},
        }
        coverage = parse_simplecov(json.dumps(resultset))
        assert (coverage.lines.total, coverage.lines.covered) == (3, 2)
        _assert_consistent(coverage)

    def test_legacy_simplecov_line_arrays(self):
        resultset = {"RSpec": {"coverage": {"/app/a.rb": [1, None, 0]}, "timestamp": 1}}
        coverage = parse_simplecov(json.dumps(resultset))
        assert (coverage.lines.total, coverage.lines.covered) == (2, 1)


class TestCoverageMetric:
    def test_from_counts_clamps(self):
        metric = CoverageMetric.from_counts(10, 12)
        assert (metric.total, metric.covered, metric.pct) == (10, 10, 100.0)

    def test_zero_total(self):
        assert CoverageMetric.from_counts(0, 0).pct == 0.0

    def test_from_rate(self):
        metric = CoverageMetric.from_rate(0.5, 7)
        assert metric.covered == round(3.5)
        assert metric.pct == pytest.approx(metric.covered / 7 * 100)
