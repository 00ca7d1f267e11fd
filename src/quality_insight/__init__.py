"""
Quality Insight - Polyglot Test-Quality Analysis

Finds the exported functions of a repository and the tests that exercise
them, classifies which scenarios each function's tests cover, folds in
coverage and mutation-testing artifacts, and scores the result.
"""

__version__ = "0.1.0"

from .config import AnalysisConfig, load_config
from .models import QualityReport
from .pipeline import PipelineResult, analyze, run_pipeline

__all__ = [
    "analyze",  # Main entry point
    "run_pipeline",  # Report plus step bookkeeping
    "AnalysisConfig",
    "PipelineResult",
    "QualityReport",
    "load_config",
]
