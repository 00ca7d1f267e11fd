"""Configuration loading and management for Quality Insight.

Configuration sources are merged in priority order:
    1. Defaults (defined in AnalysisConfig)
    2. Global config (~/.quality-insight.toml)
    3. Project config (./quality-insight.toml)
    4. Explicit config file
    5. QUALITY_INSIGHT_* environment variables
    6. Keyword overrides (typically CLI flags)

Example:
    >>> config = load_config(verbose=True, max_patches=3)
    >>> config.verbosity
    'verbose'
    >>> config.max_patches
    3
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Mapping, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError
from .extraction.cues import DEFAULT_CUES, CueTables

Verbosity = Literal["quiet", "normal", "verbose"]

ENV_PREFIX = "QUALITY_INSIGHT_"
GLOBAL_CONFIG_NAME = ".quality-insight.toml"
PROJECT_CONFIG_NAME = "quality-insight.toml"

# Upper bound on proposed test patches per run
MAX_PATCHES = 5


@dataclass(frozen=True)
class ScoringConfig:
    """Weights and thresholds of the quality score.

    Attributes:
        critical_coverage_weight: Points for testing every CRITICAL/HIGH function
        diversity_points: Points per diversity sub-check (edge, error,
            mocks, assertion density)
        grouping_points: Points for grouping tests into blocks
        hooks_points: Points for using setup/teardown hooks
        no_empty_tests_points: Points when every test asserts something
        ratio_tiers: (minimum ratio, points) pairs, highest first
        ratio_max_points: Points available for the test-file ratio; below
            the lowest tier they scale linearly
        min_assertions_per_test: Average needed for the density sub-check
        grade_thresholds: (grade, minimum score) pairs, highest first;
            anything lower is F
    """

    critical_coverage_weight: float = 40.0
    diversity_points: float = 5.0
    grouping_points: float = 10.0
    hooks_points: float = 5.0
    no_empty_tests_points: float = 5.0
    ratio_tiers: tuple[tuple[float, float], ...] = ((0.8, 20.0), (0.5, 15.0), (0.3, 10.0))
    ratio_max_points: float = 20.0
    min_assertions_per_test: float = 2.0
    grade_thresholds: tuple[tuple[str, float], ...] = (("A", 90), ("B", 80), ("C", 70), ("D", 60))

    def __post_init__(self) -> None:
        """Validate scoring configuration."""
        total = (
            self.critical_coverage_weight
            + 4 * self.diversity_points
            + self.grouping_points
            + self.hooks_points
            + self.no_empty_tests_points
            + self.ratio_max_points
        )
        if abs(total - 100.0) > 1e-9:
            raise ValueError(f"Scoring points must total 100, got {total:g}")

        if not self.ratio_tiers:
            raise ValueError("ratio_tiers must not be empty")
        minimums = [minimum for minimum, _ in self.ratio_tiers]
        if minimums != sorted(minimums, reverse=True):
            raise ValueError("ratio_tiers must be ordered from highest ratio to lowest")
        for minimum, points in self.ratio_tiers:
            if minimum <= 0:
                raise ValueError("ratio tier minimums must be positive")
            if not 0 <= points <= self.ratio_max_points:
                raise ValueError("ratio tier points must be between 0 and ratio_max_points")

        scores = [minimum for _, minimum in self.grade_thresholds]
        if scores != sorted(scores, reverse=True):
            raise ValueError("grade_thresholds must be ordered from highest score to lowest")
        if self.min_assertions_per_test < 0:
            raise ValueError("min_assertions_per_test must be non-negative")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ScoringConfig":
        """Build from a TOML ``[scoring]`` table, where pairs arrive as lists."""
        kwargs = dict(data)
        if "ratio_tiers" in kwargs:
            kwargs["ratio_tiers"] = tuple((float(a), float(b)) for a, b in kwargs["ratio_tiers"])
        if "grade_thresholds" in kwargs:
            kwargs["grade_thresholds"] = tuple((str(g), float(s)) for g, s in kwargs["grade_thresholds"])
        return cls(**kwargs)


DEFAULT_SCORING = ScoringConfig()


@dataclass(frozen=True)
class AnalysisConfig:
    """Configuration for one analysis run.

    Attributes:
        Performance:
            workers: Extraction threads (None = min(cpu_count, 8))
            deadline_seconds: Whole-run deadline (None = unbounded)

        File filtering:
            exclude_patterns: Glob patterns to exclude from analysis
            max_file_size_mb: Files above this size are skipped
            max_files: Stop collecting after this many files
            include_private: Analyze non-exported functions too

        Language:
            default_language: Adapter used when detection finds nothing

        Artifacts:
            coverage_file: Explicit coverage report (else auto-discovered)
            mutation_file: Explicit mutation report (else auto-discovered)
            mutation_threshold: Minimum mutation score for ``ok``
            skip_coverage / skip_mutation / skip_mocks: Disable a step

        Output:
            generate_patches: Propose test skeletons for risky gaps
            max_patches: Cap on proposed patches
            verbosity: Logging verbosity level

        Extraction:
            span_fallback_lines: End-line offset used for unbalanced blocks
    """

    # Performance
    workers: Optional[int] = None
    deadline_seconds: Optional[float] = None

    # File filtering
    exclude_patterns: list[str] = field(
        default_factory=lambda: [
            "*.min.js",
            "*.bundle.js",
            "*.generated.*",
            "*.d.ts",
            "*_pb2.py",
            "*.pb.go",
            "migrations/*",
            "fixtures/*",
        ]
    )
    max_file_size_mb: float = 10.0
    max_files: int = 10000
    include_private: bool = False

    # Language
    default_language: str = "typescript"

    # Artifacts
    coverage_file: Optional[str] = None
    mutation_file: Optional[str] = None
    mutation_threshold: float = 0.7
    skip_coverage: bool = False
    skip_mutation: bool = False
    skip_mocks: bool = False

    # Output control
    generate_patches: bool = True
    max_patches: int = MAX_PATCHES
    verbosity: Verbosity = "normal"

    # Extraction
    span_fallback_lines: int = 20

    # Nested tables
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    cues: CueTables = field(default_factory=lambda: DEFAULT_CUES)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.workers is not None and self.workers < 1:
            raise ValueError("workers must be at least 1")
        if self.deadline_seconds is not None and self.deadline_seconds <= 0:
            raise ValueError("deadline_seconds must be positive")

        if self.max_file_size_mb <= 0:
            raise ValueError("max_file_size_mb must be positive")
        if self.max_files < 1:
            raise ValueError("max_files must be at least 1")

        if not 0.0 <= self.mutation_threshold <= 1.0:
            raise ValueError("mutation_threshold must be between 0.0 and 1.0")
        if not 0 <= self.max_patches <= MAX_PATCHES:
            raise ValueError(f"max_patches must be between 0 and {MAX_PATCHES}")
        if self.span_fallback_lines < 1:
            raise ValueError("span_fallback_lines must be at least 1")
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise ValueError(f"verbosity must be quiet, normal or verbose, got '{self.verbosity}'")

    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return int(self.max_file_size_mb * 1024 * 1024)


def load_config(config_file: Optional[Path] = None, **overrides) -> AnalysisConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags); ``None``
            values are ignored so unset flags never mask file settings

    Returns:
        Validated AnalysisConfig instance

    Raises:
        ConfigurationError: If a config file is missing or invalid, a value
            fails validation, or a key is unknown
    """
    merged: dict = {}

    # 1. Global config
    global_config = Path.home() / GLOBAL_CONFIG_NAME
    if global_config.exists():
        merged.update(_load_toml_file(global_config))

    # 2. Project config
    project_config = Path.cwd() / PROJECT_CONFIG_NAME
    if project_config.exists():
        merged.update(_load_toml_file(project_config))

    # 3. Explicit config file
    if config_file is not None:
        config_file = Path(config_file)
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        merged.update(_load_toml_file(config_file))

    # 4. Environment variables
    merged.update(_load_env_vars())

    # 5. Keyword overrides
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if overrides.pop("verbose", False):
        overrides["verbosity"] = "verbose"
    if overrides.pop("quiet", False):
        overrides["verbosity"] = "quiet"
    merged.update(overrides)

    scoring = merged.pop("scoring", None)
    if isinstance(scoring, Mapping):
        try:
            merged["scoring"] = ScoringConfig.from_mapping(scoring)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid [scoring] config: {e}")
    elif scoring is not None:
        merged["scoring"] = scoring

    cues = merged.pop("cues", None)
    if isinstance(cues, Mapping):
        try:
            merged["cues"] = CueTables.from_mapping(cues)
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigurationError(f"Invalid [cues] config: {e}")
    elif cues is not None:
        merged["cues"] = cues

    try:
        return AnalysisConfig(**merged)
    except (TypeError, ValueError) as e:
        # Unknown field or failed validation
        raise ConfigurationError(f"Invalid configuration: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load scalar fields from QUALITY_INSIGHT_* environment variables.

    ``QUALITY_INSIGHT_WORKERS=4`` sets ``workers``; booleans accept
    true/false/1/0/yes/no/on/off. List and nested fields are not read
    from the environment.
    """
    type_hints = get_type_hints(AnalysisConfig)
    result: dict[str, Any] = {}

    for field_name in AnalysisConfig.__dataclass_fields__:
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))
        if parsed is not None:
            result[field_name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment string to the field's type.

    Returns None for types that cannot come from the environment.

    Raises:
        ValueError: If the value does not parse as the expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    # Optional[X] is Union[X, None]
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none = [t for t in args if t is not type(None)]
        if non_none:
            type_hint = non_none[0]
            origin = getattr(type_hint, "__origin__", None)

    if origin is list or type_hint is list:
        return None

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load a TOML file.

    Raises:
        ConfigurationError: If TOML support is missing or the file is invalid
    """
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        try:
            # Fallback to tomli for Python 3.9-3.10
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigurationError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Invalid config file '{path}': {e}")
