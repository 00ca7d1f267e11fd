"""Exception hierarchy for Quality Insight."""

from .analysis import (
    AnalysisError,
    AnalysisTimeoutError,
    FileAccessError,
    ParsingError,
    UnsupportedFormatError,
    UnsupportedLanguageError,
)
from .base import QualityInsightError
from .config import (
    ConfigurationError,
    InvalidConfigError,
    InvalidPathError,
)

__all__ = [
    "QualityInsightError",
    "AnalysisError",
    "FileAccessError",
    "ParsingError",
    "UnsupportedLanguageError",
    "UnsupportedFormatError",
    "AnalysisTimeoutError",
    "ConfigurationError",
    "InvalidPathError",
    "InvalidConfigError",
]
