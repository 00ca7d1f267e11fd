"""Shared CLI helpers."""

from pathlib import Path
from typing import Optional

from rich.console import Console

from ..config import AnalysisConfig, load_config

console = Console()


def resolve_config(
    config: Optional[Path] = None,
    workers: Optional[int] = None,
    timeout: Optional[float] = None,
    coverage: Optional[Path] = None,
    mutation: Optional[Path] = None,
    no_patches: bool = False,
    verbose: bool = False,
    quiet: bool = False,
) -> AnalysisConfig:
    """Build configuration from CLI options; unset options leave file settings alone."""
    overrides = {}
    if workers is not None:
        overrides["workers"] = workers
    if timeout is not None:
        overrides["deadline_seconds"] = timeout
    if coverage is not None:
        overrides["coverage_file"] = str(coverage)
    if mutation is not None:
        overrides["mutation_file"] = str(mutation)
    if no_patches:
        overrides["generate_patches"] = False
    return load_config(config_file=config, verbose=verbose, quiet=quiet, **overrides)
