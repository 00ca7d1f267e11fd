"""Coverage report parsers.

One pure function per native format, each mapping raw report text onto the
canonical ``Coverage`` model. Every parser returns all four metrics; a
dimension the format does not record is a zero metric, never missing.

Numbers are always recomputed from counts, so ``pct`` is in [0, 100] even
when the source stores [0, 1] rates (Cobertura) or pre-scaled percentages
(Istanbul). Malformed numbers inside a recognized format are logged and the
affected metric degrades to zero.
"""

from __future__ import annotations

import json
import math
import re
import xml.etree.ElementTree as ET
from typing import Any, Callable, Iterable, Optional

from ..logging_config import get_logger
from ..models import ZERO_METRIC, Coverage, CoverageMetric

logger = get_logger(__name__)

_GO_BLOCK_RE = re.compile(r"^(?P<block>.+:\d+\.\d+,\d+\.\d+)\s+(?P<stmts>\S+)\s+(?P<count>\S+)\s*$")
_CONDITION_RE = re.compile(r"\((\d+)/(\d+)\)")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _number(value: Any, field: str, fmt: str) -> Optional[float]:
    """Parse a numeric attribute; ``None`` when absent or malformed."""
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning(f"Malformed {field}={value!r} in {fmt} report")
        return None
    if not math.isfinite(number) or number < 0:
        logger.warning(f"Out of range {field}={value!r} in {fmt} report")
        return None
    return number


def _counts(total: Optional[float], covered: Optional[float], skipped: float = 0) -> CoverageMetric:
    if total is None or covered is None:
        return ZERO_METRIC
    return CoverageMetric.from_counts(int(total), int(covered), int(skipped))


def _xml_root(content: str, fmt: str, source: Optional[str]) -> Optional[ET.Element]:
    try:
        return ET.fromstring(content)
    except ET.ParseError as e:
        logger.warning(f"Unparsable {fmt} report {source or ''}: {e}")
        return None


def _json(content: str, fmt: str, source: Optional[str]) -> Any:
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        logger.warning(f"Unparsable {fmt} report {source or ''}: {e}")
        return None


def _hit_metric(counts: Iterable[Any], fmt: str) -> CoverageMetric:
    """Metric over hit counts where ``None`` marks a non-executable entry."""
    total = covered = 0
    for count in counts:
        if count is None:
            continue
        number = _number(count, "hits", fmt)
        if number is None:
            continue
        total += 1
        covered += number > 0
    return CoverageMetric.from_counts(total, covered)


# ---------------------------------------------------------------------------
# XML formats
# ---------------------------------------------------------------------------


def parse_cobertura(content: str, source: Optional[str] = None) -> Coverage:
    """Cobertura XML (coverage.py ``xml``, gcovr, Istanbul cobertura reporter).

    Root attributes carry totals. ``line-rate`` is a [0, 1] fraction and is
    only used to derive the covered count when ``lines-covered`` is absent.
    Without root totals the per-class ``<line>`` entries are counted.
    """
    root = _xml_root(content, "cobertura", source)
    if root is None:
        return Coverage(format="cobertura", source=source)

    class_lines = list(root.iterfind(".//class/lines/line"))

    lines = _cobertura_metric(root, "lines", "line-rate")
    if lines is None:
        lines = _hit_metric((line.get("hits") for line in class_lines), "cobertura")

    branches = _cobertura_metric(root, "branches", "branch-rate")
    if branches is None:
        total = covered = 0
        for line in class_lines:
            if line.get("branch") != "true":
                continue
            match = _CONDITION_RE.search(line.get("condition-coverage", ""))
            if match:
                covered += int(match.group(1))
                total += int(match.group(2))
        branches = CoverageMetric.from_counts(total, covered)

    methods = list(root.iterfind(".//class/methods/method"))
    method_hits = 0
    for method in methods:
        hits = [_number(l.get("hits"), "hits", "cobertura") or 0 for l in method.iterfind("lines/line")]
        rate = _number(method.get("line-rate"), "line-rate", "cobertura") or 0
        method_hits += any(h > 0 for h in hits) or rate > 0
    functions = CoverageMetric.from_counts(len(methods), method_hits)

    return Coverage(
        format="cobertura",
        lines=lines,
        functions=functions,
        branches=branches,
        statements=lines,
        source=source,
    )


def _cobertura_metric(root: ET.Element, kind: str, rate_attr: str) -> Optional[CoverageMetric]:
    valid = _number(root.get(f"{kind}-valid"), f"{kind}-valid", "cobertura")
    if valid is None:
        return None
    covered = _number(root.get(f"{kind}-covered"), f"{kind}-covered", "cobertura")
    if covered is not None:
        return CoverageMetric.from_counts(int(valid), int(covered))
    rate = _number(root.get(rate_attr), rate_attr, "cobertura")
    if rate is None:
        return CoverageMetric.from_counts(int(valid), 0)
    return CoverageMetric.from_rate(rate, int(valid))


_JACOCO_COUNTERS = {
    "LINE": "lines",
    "METHOD": "functions",
    "BRANCH": "branches",
    "INSTRUCTION": "statements",
}


def parse_jacoco(content: str, source: Optional[str] = None) -> Coverage:
    """JaCoCo XML. Report-level counters, else the sum of package counters."""
    root = _xml_root(content, "jacoco", source)
    if root is None:
        return Coverage(format="jacoco", source=source)

    counters = root.findall("counter")
    if not counters:
        counters = root.findall("package/counter")

    sums: dict[str, list[int]] = {}
    for counter in counters:
        field = _JACOCO_COUNTERS.get(counter.get("type", ""))
        if field is None:
            continue
        missed = _number(counter.get("missed"), "missed", "jacoco")
        covered = _number(counter.get("covered"), "covered", "jacoco")
        if missed is None or covered is None:
            sums[field] = [0, 0, 1]  # marks the dimension as malformed
            continue
        bucket = sums.setdefault(field, [0, 0, 0])
        bucket[0] += int(missed) + int(covered)
        bucket[1] += int(covered)

    metrics = {
        field: ZERO_METRIC if bucket[2] else CoverageMetric.from_counts(bucket[0], bucket[1])
        for field, bucket in sums.items()
    }
    return Coverage(format="jacoco", source=source, **metrics)


def parse_clover(content: str, source: Optional[str] = None) -> Coverage:
    """Clover XML. Lines come from ``elements``, branches from ``conditionals``."""
    root = _xml_root(content, "clover", source)
    if root is None:
        return Coverage(format="clover", source=source)

    blocks = root.findall("project/metrics") or root.findall(".//file/metrics")

    def metric(total_attr: str, covered_attr: str) -> CoverageMetric:
        total = covered = 0.0
        for block in blocks:
            t = _number(block.get(total_attr), total_attr, "clover")
            c = _number(block.get(covered_attr), covered_attr, "clover")
            if block.get(total_attr) is not None and (t is None or c is None):
                return ZERO_METRIC
            total += t or 0
            covered += c or 0
        return CoverageMetric.from_counts(int(total), int(covered))

    return Coverage(
        format="clover",
        lines=metric("elements", "coveredelements"),
        functions=metric("methods", "coveredmethods"),
        branches=metric("conditionals", "coveredconditionals"),
        statements=metric("statements", "coveredstatements"),
        source=source,
    )


# ---------------------------------------------------------------------------
# Text formats
# ---------------------------------------------------------------------------


def parse_lcov(content: str, source: Optional[str] = None) -> Coverage:
    """LCOV tracefile. Summary records are summed across ``SF`` sections.

    Sections without ``LF``/``LH`` fall back to counting their ``DA`` records.
    """
    totals = {"LF": 0, "LH": 0, "FNF": 0, "FNH": 0, "BRF": 0, "BRH": 0}
    da_total = da_hit = 0
    section_has_lf = False

    for raw in content.splitlines():
        line = raw.strip()
        if not line:
            continue
        if line == "end_of_record":
            section_has_lf = False
            continue
        tag, _, value = line.partition(":")
        if tag in totals:
            number = _number(value, tag, "lcov")
            if number is not None:
                totals[tag] += int(number)
            section_has_lf = section_has_lf or tag == "LF"
        elif tag == "DA" and not section_has_lf:
            parts = value.split(",")
            hits = _number(parts[1] if len(parts) > 1 else None, "DA", "lcov")
            if hits is not None:
                da_total += 1
                da_hit += hits > 0

    line_total = totals["LF"] or da_total
    line_hit = totals["LH"] if totals["LF"] else da_hit
    lines = CoverageMetric.from_counts(line_total, line_hit)
    return Coverage(
        format="lcov",
        lines=lines,
        functions=CoverageMetric.from_counts(totals["FNF"], totals["FNH"]),
        branches=CoverageMetric.from_counts(totals["BRF"], totals["BRH"]),
        statements=lines,
        source=source,
    )


def parse_go(content: str, source: Optional[str] = None) -> Coverage:
    """Go ``coverage.out`` profile: ``file:l.c,l.c numStmt count`` per block.

    A block listed more than once (merged profiles) counts once, with its
    highest hit count. The profile has statement granularity only, so
    functions and branches are zero metrics.
    """
    blocks: dict[str, tuple[int, int]] = {}
    for raw in content.splitlines():
        line = raw.strip()
        if not line or line.startswith("mode:"):
            continue
        match = _GO_BLOCK_RE.match(line)
        stmts = _number(match.group("stmts"), "numStmt", "go") if match else None
        count = _number(match.group("count"), "count", "go") if match else None
        if stmts is None or count is None:
            logger.warning(f"Skipping malformed go coverage line: {line!r}")
            continue
        key = match.group("block")
        previous = blocks.get(key)
        if previous is None or count > previous[1]:
            blocks[key] = (int(stmts), int(count))

    total = sum(stmts for stmts, _ in blocks.values())
    covered = sum(stmts for stmts, count in blocks.values() if count > 0)
    statements = CoverageMetric.from_counts(total, covered)
    return Coverage(format="go", lines=statements, statements=statements, source=source)


# ---------------------------------------------------------------------------
# JSON formats
# ---------------------------------------------------------------------------


def parse_simplecov(content: str, source: Optional[str] = None) -> Coverage:
    """SimpleCov ``.resultset.json`` (or the single-suite JSON formatter output).

    Suites are merged per file: a line is covered when any suite hit it.
    """
    data = _json(content, "simplecov", source)
    if not isinstance(data, dict):
        return Coverage(format="simplecov", source=source)

    suites = [data] if "coverage" in data else [s for s in data.values() if isinstance(s, dict)]
    line_hits: dict[str, list[Optional[float]]] = {}
    branch_hits: dict[tuple[str, str, str], float] = {}

    for suite in suites:
        for path, entry in (suite.get("coverage") or {}).items():
            counts = entry.get("lines", []) if isinstance(entry, dict) else entry
            merged = line_hits.setdefault(path, [])
            for i, count in enumerate(counts or []):
                value = None if count is None or count == "ignored" else _number(count, "hits", "simplecov")
                if i >= len(merged):
                    merged.append(value)
                elif value is not None:
                    merged[i] = max(merged[i] or 0, value)
            branches = entry.get("branches", {}) if isinstance(entry, dict) else {}
            for condition, arms in (branches or {}).items():
                for arm, count in (arms or {}).items():
                    key = (path, condition, arm)
                    hits = _number(count, "branch", "simplecov") or 0
                    branch_hits[key] = max(branch_hits.get(key, 0), hits)

    lines = _hit_metric((c for counts in line_hits.values() for c in counts), "simplecov")
    branches = CoverageMetric.from_counts(len(branch_hits), sum(1 for h in branch_hits.values() if h > 0))
    return Coverage(format="simplecov", lines=lines, branches=branches, statements=lines, source=source)


def parse_istanbul(content: str, source: Optional[str] = None) -> Coverage:
    """Istanbul/NYC JSON: ``coverage-summary.json`` or ``coverage-final.json``.

    Summary percentages are already on a [0, 100] scale; they are ignored in
    favor of the counts so the result stays consistent either way.
    """
    data = _json(content, "istanbul", source)
    if not isinstance(data, dict):
        return Coverage(format="istanbul", source=source)

    if "total" in data or "lines" in data:
        total = data.get("total", data)
        return Coverage(
            format="istanbul",
            lines=_istanbul_summary(total.get("lines")),
            functions=_istanbul_summary(total.get("functions")),
            branches=_istanbul_summary(total.get("branches")),
            statements=_istanbul_summary(total.get("statements")),
            source=source,
        )
    return _istanbul_final(data, source)


def _istanbul_summary(metric: Any) -> CoverageMetric:
    if not isinstance(metric, dict):
        return ZERO_METRIC
    return _counts(
        _number(metric.get("total", 0), "total", "istanbul"),
        _number(metric.get("covered", 0), "covered", "istanbul"),
        _number(metric.get("skipped", 0), "skipped", "istanbul") or 0,
    )


def _istanbul_final(data: dict, source: Optional[str]) -> Coverage:
    statement_counts: list[Any] = []
    function_counts: list[Any] = []
    branch_counts: list[Any] = []
    line_total = line_covered = 0

    for entry in data.values():
        if not isinstance(entry, dict):
            continue
        hits = entry.get("s", {}) or {}
        statement_counts.extend(hits.values())
        function_counts.extend((entry.get("f", {}) or {}).values())
        for arms in (entry.get("b", {}) or {}).values():
            branch_counts.extend(arms or [])

        # A line is covered when any statement starting on it ran
        by_line: dict[int, bool] = {}
        for sid, location in (entry.get("statementMap", {}) or {}).items():
            start = (location or {}).get("start", {}).get("line")
            if start is None:
                continue
            count = _number(hits.get(sid, 0), "s", "istanbul") or 0
            by_line[start] = by_line.get(start, False) or count > 0
        line_total += len(by_line)
        line_covered += sum(by_line.values())

    return Coverage(
        format="istanbul",
        lines=CoverageMetric.from_counts(line_total, line_covered),
        functions=_hit_metric(function_counts, "istanbul"),
        branches=_hit_metric(branch_counts, "istanbul"),
        statements=_hit_metric(statement_counts, "istanbul"),
        source=source,
    )


def parse_coveragepy(content: str, source: Optional[str] = None) -> Coverage:
    """coverage.py ``json`` report. Only the ``totals`` block is read."""
    data = _json(content, "coveragepy", source)
    totals = data.get("totals") if isinstance(data, dict) else None
    if not isinstance(totals, dict):
        return Coverage(format="coveragepy", source=source)

    def num(key: str) -> Optional[float]:
        return _number(totals.get(key), key, "coveragepy")

    lines = _counts(num("num_statements"), num("covered_lines"), num("excluded_lines") or 0)
    branches = _counts(num("num_branches") or 0, num("covered_branches") or 0)
    return Coverage(format="coveragepy", lines=lines, branches=branches, statements=lines, source=source)


PARSERS: dict[str, Callable[[str, Optional[str]], Coverage]] = {
    "cobertura": parse_cobertura,
    "jacoco": parse_jacoco,
    "lcov": parse_lcov,
    "go": parse_go,
    "clover": parse_clover,
    "simplecov": parse_simplecov,
    "istanbul": parse_istanbul,
    "coveragepy": parse_coveragepy,
}
