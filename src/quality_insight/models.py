"""Data model shared by every analysis stage.

All records are frozen dataclasses built fresh for each run. Collections are
tuples so that a finished ``QualityReport`` cannot be mutated after
construction and serializes the same way every time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Criticality(str, Enum):
    """How much damage a defect in the function is likely to cause."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def is_high_risk(self) -> bool:
        return self in (Criticality.CRITICAL, Criticality.HIGH)


class Category(str, Enum):
    """Coarse role of a function, derived from its name."""

    PARSER = "parser"
    VALIDATOR = "validator"
    CORE = "core"
    UTIL = "util"
    OTHER = "other"


# ---------------------------------------------------------------------------
# Source inventory
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FunctionInfo:
    """One unit of behavior found in a source file.

    Identity is ``(name, file_path)``: the same name in two files is two
    functions.
    """

    name: str
    file_path: str
    start_line: int
    end_line: int
    params: tuple[str, ...] = ()
    is_exported: bool = True
    is_async: bool = False
    criticality: Criticality = Criticality.LOW
    category: Category = Category.OTHER
    throws: tuple[str, ...] = ()
    side_effects: tuple[str, ...] = ()

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.file_path)


@dataclass(frozen=True)
class AssertionInfo:
    """A single assertion inside a test body.

    Attributes:
        type: Assertion class (``equality``, ``throws``, ``called_with``,
            ``called``, ``truthiness``, ``definedness``, ``snapshot``, ``other``).
        matcher: The matcher or assertion function as written (``toBe``,
            ``assertEqual``, ``==``).
        is_weak: True for existence/truthiness style checks.
        line: 1-based line number in the test file.
    """

    type: str
    matcher: str
    is_weak: bool
    line: int


@dataclass(frozen=True)
class MockInfo:
    """A test double created inside a test."""

    kind: str  # mock | spy | stub
    target: str
    file_path: str
    line: int
    test_name: str
    verified: bool


@dataclass(frozen=True)
class TestInfo:
    """One test case and the lexical cues found in its body."""

    __test__ = False

    name: str
    file_path: str
    line: int = 0
    target_function: Optional[str] = None
    assertions: tuple[AssertionInfo, ...] = ()
    has_spies: bool = False
    has_mocks: bool = False
    mocks: tuple[MockInfo, ...] = ()

    @property
    def has_assertions(self) -> bool:
        return bool(self.assertions)

    def has_assertion_type(self, *types: str) -> bool:
        return any(a.type in types for a in self.assertions)


@dataclass(frozen=True)
class TestFileSummary:
    """Per-file structure signals that feed the score composer."""

    __test__ = False

    file_path: str
    tests: tuple[TestInfo, ...] = ()
    grouping_blocks: int = 0
    hooks: int = 0
    # Doubles created outside any single test (module scope, setup hooks)
    shared_mocks: tuple[MockInfo, ...] = ()


@dataclass(frozen=True)
class ScenarioMatrix:
    """Which scenarios a function's tests cover, and the resulting gaps."""

    function_name: str
    file_path: str
    happy: bool
    error: bool
    edge: bool
    side_effects: bool
    gaps: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Coverage
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CoverageMetric:
    """Counts for one coverage dimension, with ``pct`` in [0, 100]."""

    total: int = 0
    covered: int = 0
    skipped: int = 0
    pct: float = 0.0

    @classmethod
    def from_counts(cls, total: int, covered: int, skipped: int = 0) -> "CoverageMetric":
        """Build a metric whose percentage always agrees with its counts."""
        total = max(int(total), 0)
        covered = min(max(int(covered), 0), total)
        skipped = max(int(skipped), 0)
        pct = covered / total * 100 if total > 0 else 0.0
        return cls(total=total, covered=covered, skipped=skipped, pct=pct)

    @classmethod
    def from_rate(cls, rate: float, total: int) -> "CoverageMetric":
        """Build a metric from a [0, 1] fraction and a known total."""
        rate = min(max(float(rate), 0.0), 1.0)
        return cls.from_counts(total, round(rate * total))


ZERO_METRIC = CoverageMetric()


@dataclass(frozen=True)
class Coverage:
    """Canonical coverage model every format parser produces."""

    format: str
    lines: CoverageMetric = ZERO_METRIC
    functions: CoverageMetric = ZERO_METRIC
    branches: CoverageMetric = ZERO_METRIC
    statements: CoverageMetric = ZERO_METRIC
    source: Optional[str] = None


# ---------------------------------------------------------------------------
# Mutation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SurvivingMutant:
    file_path: str
    line: int
    mutator: str
    description: str = ""
    method: Optional[str] = None


@dataclass(frozen=True)
class MutationResult:
    """Canonical four-bucket mutation outcome.

    ``total_mutants``, ``score`` and ``ok`` are derived in ``__post_init__``
    so they can never disagree with the buckets.
    """

    tool: str
    killed: int = 0
    survived: int = 0
    timeout: int = 0
    no_coverage: int = 0
    threshold: float = 0.7
    survivors: tuple[SurvivingMutant, ...] = ()
    total_mutants: int = field(init=False)
    score: float = field(init=False)
    ok: bool = field(init=False)

    def __post_init__(self) -> None:
        total = self.killed + self.survived + self.timeout + self.no_coverage
        score = self.killed / total if total > 0 else 0.0
        object.__setattr__(self, "total_mutants", total)
        object.__setattr__(self, "score", score)
        object.__setattr__(self, "ok", score >= self.threshold)


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScoreBreakdown:
    critical_coverage: float = 0.0
    diversity: float = 0.0
    structure: float = 0.0
    ratio: float = 0.0

    @property
    def total(self) -> float:
        return self.critical_coverage + self.diversity + self.structure + self.ratio


@dataclass(frozen=True)
class ScenarioCoverage:
    """Percentage of analyzed functions covering each scenario."""

    happy: float = 0.0
    edge: float = 0.0
    error: float = 0.0
    side_effects: float = 0.0


@dataclass(frozen=True)
class QualityMetrics:
    quality_score: float
    grade: str
    breakdown: ScoreBreakdown
    scenario_coverage: ScenarioCoverage
    scenario_matrix_critical: float = 0.0
    total_functions: int = 0
    critical_functions: int = 0
    critical_functions_tested: int = 0
    critical_functions_coverage: float = 0.0
    total_tests: int = 0
    test_files: int = 0
    source_files: int = 0
    test_file_ratio: float = 0.0
    avg_assertions_per_test: float = 0.0
    tests_without_assertions: int = 0
    coverage: Optional[Coverage] = None
    mutation: Optional[MutationResult] = None


@dataclass(frozen=True)
class FunctionReport:
    """A function joined with its scenario matrix and matched test names."""

    function: FunctionInfo
    scenarios: ScenarioMatrix
    tests: tuple[str, ...] = ()


@dataclass(frozen=True)
class QualityReport:
    product: str
    language: str
    framework: str
    metrics: QualityMetrics
    functions: tuple[FunctionReport, ...] = ()
    tests: tuple[TestInfo, ...] = ()
    gaps: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()
    patches: tuple[str, ...] = ()
