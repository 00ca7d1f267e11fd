"""End-to-end analysis of one repository.

Steps, in order:
    detect        pick the language adapter and test framework
    extract       scan source and test files (parallel, deadline-bound)
    match         attach tests to functions
    scenarios     build a scenario matrix per function
    coverage      normalize a coverage artifact, if one is present
    mutation      aggregate a mutation artifact, if one is present
    mocks         over-mocking and weak-assertion warnings
    score         compose the quality score and grade
    recommend     derive recommendations
    patches       propose test skeletons for risky gaps
    validate      check the finished report's invariants

A missing or unsupported artifact only removes its section from the report.
Exceeding the deadline fails the whole run: no partial report is returned.

Usage:
    from quality_insight.pipeline import run_pipeline

    result = run_pipeline("/path/to/repo")
    print(result.report.metrics.quality_score)
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from .adapters import LanguageAdapter, detect_adapter, get_adapter
from .config import AnalysisConfig, load_config
from .diagnostics import weak_assertion_warnings
from .exceptions import FileAccessError, InvalidPathError, UnsupportedFormatError
from .extraction import Deadline, RepositoryScanner
from .logging_config import get_logger
from .matching import TestMatcher
from .models import Coverage, FunctionReport, MutationResult, QualityReport
from .patches import build_patches
from .recommendations import build_recommendations
from .scoring import ScoreComposer

logger = get_logger(__name__)

PathLike = Union[str, Path]


@dataclass
class PipelineResult:
    """A report plus the bookkeeping of how it was produced.

    Attributes:
        report: The finished, immutable report
        steps_executed: Steps that ran, in order
        steps_skipped: Steps that did not run, with the reason
        warnings: Everything absorbed along the way (also on the report)
        validation_errors: Invariant violations found in the report
    """

    report: QualityReport
    steps_executed: list[str] = field(default_factory=list)
    steps_skipped: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    validation_errors: list[str] = field(default_factory=list)


def run_pipeline(
    repo: PathLike,
    product: Optional[str] = None,
    language: Optional[str] = None,
    config: Optional[AnalysisConfig] = None,
    config_file: Optional[Path] = None,
    **overrides,
) -> PipelineResult:
    """Analyze ``repo`` and return the report with step bookkeeping.

    Args:
        repo: Repository root
        product: Name shown on the report (default: directory name)
        language: Adapter to use instead of detection
        config: Ready configuration; ``overrides`` are applied on top
        config_file: TOML file, used only when ``config`` is not given
        **overrides: AnalysisConfig fields

    Raises:
        InvalidPathError: If ``repo`` is not a directory
        UnsupportedLanguageError: If ``language`` names no adapter
        AnalysisTimeoutError: If the run exceeds ``deadline_seconds``
        ConfigurationError: If the configuration is invalid
    """
    if config is None:
        config = load_config(config_file, **overrides)
    elif overrides:
        config = dataclasses.replace(config, **{k: v for k, v in overrides.items() if v is not None})

    root = Path(repo)
    if not root.exists():
        raise InvalidPathError(root, "does not exist")
    if not root.is_dir():
        raise InvalidPathError(root, "not a directory")

    return _Run(root, config, product, language).execute()


def analyze(
    repo: PathLike,
    product: Optional[str] = None,
    language: Optional[str] = None,
    config: Optional[AnalysisConfig] = None,
    **overrides,
) -> QualityReport:
    """Analyze ``repo`` and return only the report."""
    return run_pipeline(repo, product=product, language=language, config=config, **overrides).report


class _Run:
    """State of one pipeline execution."""

    def __init__(
        self, root: Path, config: AnalysisConfig, product: Optional[str], language: Optional[str]
    ) -> None:
        self.root = root
        self.config = config
        self.product = product or root.resolve().name
        self.language = language
        self.deadline = Deadline(config.deadline_seconds)
        self.executed: list[str] = []
        self.skipped: list[str] = []
        self.warnings: list[str] = []

    def _step(self, name: str) -> None:
        self.deadline.check(len(self.executed))
        logger.info(f"Step: {name}")
        self.executed.append(name)

    def _skip(self, name: str, reason: str) -> None:
        logger.debug(f"Skipping {name}: {reason}")
        self.skipped.append(f"{name}: {reason}")

    def execute(self) -> PipelineResult:
        config = self.config

        self._step("detect")
        adapter = self._adapter()
        framework = adapter.detect_framework(self.root) or "unknown"
        capabilities = adapter.capabilities
        logger.info(f"Language {adapter.language}, framework {framework}")

        extract_sources = capabilities.functions is not None
        extract_tests = capabilities.tests is not None
        if not extract_sources:
            self._skip("extract functions", "not available")
        if not extract_tests:
            self._skip("extract tests", "not available")

        self._step("extract")
        scanner = RepositoryScanner(
            adapter.syntax,
            cues=config.cues,
            exclude_patterns=config.exclude_patterns,
            max_file_size_mb=config.max_file_size_mb,
            max_files=config.max_files,
            include_private=config.include_private,
            span_fallback_lines=config.span_fallback_lines,
            max_workers=config.workers,
        )
        scan = scanner.scan(self.root, self.deadline, sources=extract_sources, tests=extract_tests)
        self.warnings.extend(scan.warnings)
        test_files = scan.test_files
        functions = scan.functions

        self._step("match")
        matcher = TestMatcher(adapter.syntax)
        matched, resolved = matcher.match(functions, [t for s in test_files for t in s.tests])

        self._step("scenarios")
        matrices = [capabilities.cases(f, matched[f.key]) for f in functions]

        coverage = self._coverage(adapter)
        mutation = self._mutation(adapter)

        if config.skip_mocks or capabilities.mocks is None:
            self._skip("mocks", "disabled" if config.skip_mocks else "not available")
        else:
            self._step("mocks")
            self.warnings.extend(capabilities.mocks(test_files))
        self.warnings.extend(weak_assertion_warnings(resolved))

        self._step("score")
        metrics = ScoreComposer(config.scoring, config.cues).compose(
            functions, matrices, matched, test_files, coverage, mutation
        )
        function_reports = tuple(
            FunctionReport(f, m, tuple(t.name for t in matched[f.key])) for f, m in zip(functions, matrices)
        )

        self._step("recommend")
        recommendations = build_recommendations(metrics, function_reports, test_files, config.scoring)

        patches: list[str] = []
        if not config.generate_patches or config.max_patches == 0:
            self._skip("patches", "disabled")
        else:
            self._step("patches")
            patches = build_patches(function_reports, adapter, framework, self.root, config.max_patches)

        report = QualityReport(
            product=self.product,
            language=adapter.language,
            framework=framework,
            metrics=metrics,
            functions=function_reports,
            tests=tuple(resolved),
            gaps=tuple(
                f"{f.function.file_path}:{f.function.name}: {gap}"
                for f in function_reports
                for gap in f.scenarios.gaps
            ),
            warnings=tuple(self.warnings),
            recommendations=tuple(recommendations),
            patches=tuple(patches),
        )

        validation_errors: list[str] = []
        if capabilities.schemas is None:
            self._skip("validate", "not available")
        else:
            self._step("validate")
            validation_errors = capabilities.schemas(report, config.cues, config.scoring.grade_thresholds)
            for error in validation_errors:
                logger.warning(f"Report invariant violated: {error}")

        return PipelineResult(
            report=report,
            steps_executed=self.executed,
            steps_skipped=self.skipped,
            warnings=self.warnings,
            validation_errors=validation_errors,
        )

    # -- steps -------------------------------------------------------------

    def _adapter(self) -> LanguageAdapter:
        cues, span = self.config.cues, self.config.span_fallback_lines
        if self.language:
            return get_adapter(self.language, cues, span)
        adapter = detect_adapter(self.root, cues, span)
        if adapter is None:
            self.warnings.append(
                f"No language detected; falling back to {self.config.default_language}"
            )
            adapter = get_adapter(self.config.default_language, cues, span)
        return adapter

    def _artifact(self, adapter: LanguageAdapter, kind: str, explicit: Optional[str]) -> Optional[Path]:
        if explicit is None:
            return adapter.find_artifact(self.root, kind)
        path = Path(explicit)
        if not path.is_absolute() and not path.exists():
            path = self.root / path
        return path

    def _coverage(self, adapter: LanguageAdapter) -> Optional[Coverage]:
        parse = adapter.capabilities.coverage
        if self.config.skip_coverage or parse is None:
            self._skip("coverage", "disabled" if self.config.skip_coverage else "not available")
            return None
        path = self._artifact(adapter, "coverage", self.config.coverage_file)
        if path is None:
            self._skip("coverage", "no artifact found")
            return None

        self._step("coverage")
        try:
            return parse(path)
        except (UnsupportedFormatError, FileAccessError) as e:
            logger.warning(str(e))
            self.warnings.append(f"Coverage omitted: {e.message}")
            return None

    def _mutation(self, adapter: LanguageAdapter) -> Optional[MutationResult]:
        parse = adapter.capabilities.mutation
        if self.config.skip_mutation or parse is None:
            self._skip("mutation", "disabled" if self.config.skip_mutation else "not available")
            return None
        path = self._artifact(adapter, "mutation", self.config.mutation_file)
        if path is None:
            self._skip("mutation", "no artifact found")
            return None

        self._step("mutation")
        try:
            return parse(path, self.config.mutation_threshold)
        except (UnsupportedFormatError, FileAccessError) as e:
            logger.warning(str(e))
            self.warnings.append(f"Mutation results omitted: {e.message}")
            return None
