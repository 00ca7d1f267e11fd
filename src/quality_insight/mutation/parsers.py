"""Mutation engine output parsers.

Every engine's vocabulary is folded onto four canonical buckets:

    killed       the test suite detected the mutant
    survived     the test suite ran and passed
    timeout      the mutant made the suite hang
    no_coverage  no test executed the mutated code (mutmut "suspicious" included)

Outcomes that say nothing about test strength (compile errors, runtime
errors, ignored or skipped mutants) are left out entirely. Native scores are
never copied: ``MutationResult`` recomputes ``score`` from the buckets.
"""

from __future__ import annotations

import json
import re
import xml.etree.ElementTree as ET
from collections import Counter
from pathlib import PurePosixPath
from typing import Callable, Optional

from ..logging_config import get_logger
from ..models import MutationResult, SurvivingMutant

logger = get_logger(__name__)

BUCKETS = ("killed", "survived", "timeout", "no_coverage")

STRYKER_STATUS = {
    "Killed": "killed",
    "Survived": "survived",
    "Timeout": "timeout",
    "NoCoverage": "no_coverage",
}

PIT_STATUS = {
    "KILLED": "killed",
    "SURVIVED": "survived",
    "TIMED_OUT": "timeout",
    "NO_COVERAGE": "no_coverage",
}

MUTMUT_STATUS = {
    "killed": "killed",
    "survived": "survived",
    "suspicious": "no_coverage",
    "timeout": "timeout",
    "no tests": "no_coverage",
}

# mutmut 2 progress line: "⠋ 125/125  🎉 100  ⏰ 5  🤔 3  🙁 17  🔇 0"
MUTMUT_EMOJI = {
    "\U0001F389": "killed",
    "\u23f0": "timeout",
    "\U0001F914": "no_coverage",
    "\U0001F641": "survived",
}

# mutmut 2 `results` section headings: "Survived 🙁 (3)". Skipped mutants are excluded.
MUTMUT_HEADINGS = {
    "Killed": "killed",
    "Survived": "survived",
    "Timed out": "timeout",
    "Suspicious": "no_coverage",
}

_PIT_LINE_RE = re.compile(r">> Line (?P<line>\d+): (?P<mutator>\S+) (?P<status>[A-Z_]+)")
_PIT_COUNTS_RE = re.compile(r"\b(KILLED|SURVIVED|TIMED_OUT|NO_COVERAGE)\s+(\d+)")
_PIT_GENERATED_RE = re.compile(r">> Generated (\d+) mutations Killed (\d+)")
_MUTMUT3_RE = re.compile(r"^\s*(?P<name>[\w.]+__mutmut_\d+):\s*(?P<status>[a-z][a-z ]*?)\s*$", re.MULTILINE)
_MUTMUT_EMOJI_RE = re.compile("(" + "|".join(MUTMUT_EMOJI) + r"|\U0001F507)\s*(\d+)")
MUTMUT_HEADING_RE = re.compile(
    r"^(?P<status>Killed|Survived|Timed out|Suspicious|Skipped|Untested/skipped)\s+\S*\s*\((?P<count>\d+)\)",
    re.MULTILINE,
)
_GO_SUMMARY_RE = re.compile(
    r"The mutation score is [\d.]+ \((?P<passed>\d+) passed, (?P<failed>\d+) failed, "
    r"(?:(?P<duplicated>\d+) duplicated, )?(?P<skipped>\d+) skipped, total is (?P<total>\d+)\)"
)
_GO_LINE_RE = re.compile(r'^(?P<status>PASS|FAIL|SKIP)\s+"(?P<file>[^"]+)"', re.MULTILINE)


def _result(tool: str, counts: Counter, threshold: float, survivors=()) -> MutationResult:
    return MutationResult(
        tool=tool,
        killed=counts["killed"],
        survived=counts["survived"],
        timeout=counts["timeout"],
        no_coverage=counts["no_coverage"],
        threshold=threshold,
        survivors=tuple(survivors),
    )


def _labelled_counts(content: str, labels: dict[str, str]) -> Counter:
    """Counts from ``Label: N`` lines, e.g. ``Killed: 12``."""
    counts: Counter = Counter()
    for pattern, bucket in labels.items():
        match = re.search(pattern + r":\s+(\d+)", content, re.IGNORECASE)
        if match:
            counts[bucket] += int(match.group(1))
    return counts


# ---------------------------------------------------------------------------
# Stryker
# ---------------------------------------------------------------------------


def parse_stryker(content: str, threshold: float = 0.7, source: Optional[str] = None) -> MutationResult:
    """Stryker ``mutation.json`` (mutation-testing-report-schema)."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        logger.warning(f"Unparsable stryker report {source or ''}: {e}")
        return MutationResult(tool="stryker", threshold=threshold)

    counts: Counter = Counter()
    survivors = []
    files = data.get("files", {}) if isinstance(data, dict) else {}
    for path in sorted(files):
        for mutant in (files[path] or {}).get("mutants", []):
            bucket = STRYKER_STATUS.get(mutant.get("status", ""))
            if bucket is None:
                continue
            counts[bucket] += 1
            if bucket == "survived":
                mutator = mutant.get("mutatorName", "unknown")
                replacement = mutant.get("replacement")
                survivors.append(
                    SurvivingMutant(
                        file_path=path,
                        line=int(((mutant.get("location") or {}).get("start") or {}).get("line", 0)),
                        mutator=mutator,
                        description=f"{mutator}: {replacement}" if replacement else mutator,
                    )
                )
    return _result("stryker", counts, threshold, survivors)


def parse_stryker_text(content: str, threshold: float = 0.7, source: Optional[str] = None) -> MutationResult:
    """Stryker clear-text reporter table, falling back to ``Killed: N`` lines.

    The table's last five columns are always killed, timeout, survived,
    no coverage and errors, whatever the score columns look like.
    """
    for line in content.splitlines():
        if not line.strip().startswith("All files"):
            continue
        cells = [c.strip() for c in line.split("|")]
        cells = [c for c in cells if c]
        try:
            killed, timeout, survived, no_cov = (int(c) for c in cells[-5:-1])
        except ValueError:
            logger.warning(f"Malformed stryker summary row: {line!r}")
            break
        counts = Counter(killed=killed, timeout=timeout, survived=survived, no_coverage=no_cov)
        return _result("stryker", counts, threshold)

    counts = _labelled_counts(
        content,
        {"Killed": "killed", "Survived": "survived", "Timeout": "timeout", r"No ?Coverage": "no_coverage"},
    )
    return _result("stryker", counts, threshold)


# ---------------------------------------------------------------------------
# PIT
# ---------------------------------------------------------------------------


def parse_pit(content: str, threshold: float = 0.7, source: Optional[str] = None) -> MutationResult:
    """PIT ``mutations.xml``; one ``<mutation status=...>`` per mutant."""
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        logger.warning(f"Unparsable PIT report {source or ''}: {e}")
        return MutationResult(tool="pitest", threshold=threshold)

    counts: Counter = Counter()
    survivors = []
    for mutation in root.iter("mutation"):
        bucket = PIT_STATUS.get(mutation.get("status", ""))
        if bucket is None:
            continue
        counts[bucket] += 1
        if bucket != "survived":
            continue
        mutated_class = mutation.findtext("mutatedClass", "")
        source_file = mutation.findtext("sourceFile", "unknown")
        package = mutated_class.rsplit(".", 1)[0].replace(".", "/") if "." in mutated_class else ""
        try:
            line = int(mutation.findtext("lineNumber", "0"))
        except ValueError:
            line = 0
        survivors.append(
            SurvivingMutant(
                file_path=f"{package}/{source_file}" if package else source_file,
                line=line,
                mutator=mutation.findtext("mutator", "unknown").rsplit(".", 1)[-1],
                description=mutation.findtext("description", ""),
                method=mutation.findtext("mutatedMethod") or None,
            )
        )
    return _result("pitest", counts, threshold, survivors)


def parse_pit_stdout(content: str, threshold: float = 0.7, source: Optional[str] = None) -> MutationResult:
    """PIT console output.

    Uses per-mutant ``>> Line N: Mutator STATUS`` lines when present, else the
    per-mutator ``> KILLED n SURVIVED n ...`` statistics, else the
    ``>> Generated N mutations Killed K`` summary.
    """
    counts: Counter = Counter()
    survivors = []
    for match in _PIT_LINE_RE.finditer(content):
        bucket = PIT_STATUS.get(match.group("status"))
        if bucket is None:
            continue
        counts[bucket] += 1
        if bucket == "survived":
            survivors.append(
                SurvivingMutant(file_path="unknown", line=int(match.group("line")), mutator=match.group("mutator"))
            )
    if counts:
        return _result("pitest", counts, threshold, survivors)

    for line in content.splitlines():
        stripped = line.strip()
        if stripped.startswith("> ") and not stripped.startswith(">>"):
            for status, number in _PIT_COUNTS_RE.findall(stripped):
                counts[PIT_STATUS[status]] += int(number)
    if counts:
        return _result("pitest", counts, threshold)

    match = _PIT_GENERATED_RE.search(content)
    if match:
        generated, killed = int(match.group(1)), int(match.group(2))
        counts = Counter(killed=killed, survived=max(generated - killed, 0))
    return _result("pitest", counts, threshold)


# ---------------------------------------------------------------------------
# mutmut
# ---------------------------------------------------------------------------


def parse_mutmut(content: str, threshold: float = 0.7, source: Optional[str] = None) -> MutationResult:
    """mutmut output in any of its shapes.

    - mutmut 3 ``results --all true``: ``pkg.mod.x_fn__mutmut_3: survived``
    - mutmut 2 ``results`` section headings: ``Survived 🙁 (3)``
    - mutmut 2 progress line with emoji counters
    - ``Killed: N`` / ``Survived: N`` headings
    """
    counts: Counter = Counter()
    survivors = []
    for match in _MUTMUT3_RE.finditer(content):
        bucket = MUTMUT_STATUS.get(match.group("status"))
        if bucket is None:
            continue
        counts[bucket] += 1
        if bucket == "survived":
            survivors.append(_mutmut_survivor(match.group("name")))
    if counts:
        return _result("mutmut", counts, threshold, survivors)

    headings = MUTMUT_HEADING_RE.findall(content)
    if headings:
        for status, number in headings:
            bucket = MUTMUT_HEADINGS.get(status)
            if bucket is not None:
                counts[bucket] += int(number)
        return _result("mutmut", counts, threshold)

    progress = [line for line in content.splitlines() if _MUTMUT_EMOJI_RE.search(line)]
    if progress:
        # The last progress line carries the final totals
        for emoji, number in _MUTMUT_EMOJI_RE.findall(progress[-1]):
            bucket = MUTMUT_EMOJI.get(emoji)
            if bucket is not None:
                counts[bucket] += int(number)
        return _result("mutmut", counts, threshold)

    counts = _labelled_counts(
        content,
        {
            r"Killed(?: mutants?)?": "killed",
            "Survived": "survived",
            "Suspicious": "no_coverage",
            r"Time(?:d)? ?out": "timeout",
            r"No tests": "no_coverage",
        },
    )
    return _result("mutmut", counts, threshold)


def _mutmut_survivor(name: str) -> SurvivingMutant:
    """``pkg.mod.x_parse__mutmut_3`` -> ``pkg/mod.py``, method ``parse``."""
    qualified, _, _ = name.rpartition("__mutmut_")
    module, _, function = qualified.rpartition(".")
    if function.startswith("x_"):
        function = function[2:]
    elif "ǁ" in function:
        # Methods are mangled as xǁClassǁmethod
        function = function.split("ǁ")[-1]
    return SurvivingMutant(
        file_path=str(PurePosixPath(*module.split("."))) + ".py" if module else "unknown",
        line=0,
        mutator="mutmut",
        description=name,
        method=function or None,
    )


# ---------------------------------------------------------------------------
# go-mutesting
# ---------------------------------------------------------------------------


def parse_go_mutesting(content: str, threshold: float = 0.7, source: Optional[str] = None) -> MutationResult:
    """go-mutesting stdout.

    The closing summary wins (passed -> killed, failed -> survived;
    duplicated and skipped are excluded). Without it, ``PASS``/``FAIL``
    lines are counted one by one.
    """
    survivors = []
    counts: Counter = Counter()
    for match in _GO_LINE_RE.finditer(content):
        status = match.group("status")
        if status == "PASS":
            counts["killed"] += 1
        elif status == "FAIL":
            counts["survived"] += 1
            survivors.append(
                SurvivingMutant(
                    file_path=re.sub(r"\.\d+$", "", PurePosixPath(match.group("file")).name),
                    line=0,
                    mutator="go-mutesting",
                    description=match.group("file"),
                )
            )

    summary = _GO_SUMMARY_RE.search(content)
    if summary:
        counts = Counter(killed=int(summary.group("passed")), survived=int(summary.group("failed")))
    return _result("go-mutesting", counts, threshold, survivors)


ParserFn = Callable[[str, float, Optional[str]], MutationResult]

PARSERS: dict[str, ParserFn] = {
    "stryker": parse_stryker,
    "stryker-text": parse_stryker_text,
    "pit": parse_pit,
    "pit-stdout": parse_pit_stdout,
    "mutmut": parse_mutmut,
    "go-mutesting": parse_go_mutesting,
}

