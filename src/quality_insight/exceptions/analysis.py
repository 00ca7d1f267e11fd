"""Analysis-related exceptions: file access, parsing, artifacts, deadlines."""

from pathlib import Path
from typing import List, Optional, Sequence, Union

from .base import QualityInsightError


class AnalysisError(QualityInsightError):
    """Base class for analysis-related errors."""
    pass


class FileAccessError(AnalysisError):
    """Raised when a file cannot be accessed or read."""

    def __init__(self, filepath: Path, reason: str):
        super().__init__(
            f"Cannot access file: {filepath}",
            filepath=filepath,
            reason=reason,
        )
        self.filepath = filepath
        self.reason = reason


class ParsingError(AnalysisError):
    """Raised when file content cannot be parsed."""

    def __init__(self, filepath: Path, language: str, reason: str):
        super().__init__(
            f"Failed to parse {language} file: {filepath}",
            filepath=filepath,
            language=language,
            reason=reason,
        )
        self.filepath = filepath
        self.language = language
        self.reason = reason


class UnsupportedLanguageError(AnalysisError):
    """Raised when attempting to analyze an unsupported language."""

    def __init__(self, language: str, supported_languages: List[str]):
        super().__init__(
            f"Unsupported language: {language}",
            language=language,
            supported=", ".join(supported_languages),
        )
        self.language = language
        self.supported_languages = supported_languages


class UnsupportedFormatError(AnalysisError):
    """Raised when a coverage or mutation artifact is in no recognized format."""

    def __init__(
        self,
        source: Union[str, Path],
        kind: str,
        supported_formats: Sequence[str],
    ):
        super().__init__(
            f"Unsupported {kind} format: {source}",
            source=source,
            supported=", ".join(supported_formats),
        )
        self.source = source
        self.kind = kind
        self.supported_formats = list(supported_formats)


class AnalysisTimeoutError(AnalysisError):
    """Raised when a run exceeds its deadline.

    Partial results are discarded; the run produces no report.
    """

    def __init__(self, deadline_seconds: float, completed: int = 0, total: Optional[int] = None):
        super().__init__(
            f"Analysis exceeded deadline of {deadline_seconds:g}s",
            deadline_seconds=f"{deadline_seconds:g}",
            completed=completed,
            total=total,
        )
        self.deadline_seconds = deadline_seconds
        self.completed = completed
        self.total = total
