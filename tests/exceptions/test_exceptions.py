"""Tests for the exception hierarchy."""

from pathlib import Path

import pytest

from quality_insight.exceptions import (
    AnalysisError,
    AnalysisTimeoutError,
    ConfigurationError,
    FileAccessError,
    InvalidConfigError,
    InvalidPathError,
    ParsingError,
    QualityInsightError,
    UnsupportedFormatError,
    UnsupportedLanguageError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "error",
        [
            FileAccessError(Path("a.ts"), "denied"),
            ParsingError(Path("a.ts"), "typescript", "bad token"),
            UnsupportedLanguageError("cobol", ["python", "go"]),
            UnsupportedFormatError("report.bin", "coverage", ["lcov"]),
            AnalysisTimeoutError(5),
        ],
    )
    def test_analysis_errors(self, error):
        assert isinstance(error, AnalysisError)
        assert isinstance(error, QualityInsightError)

    @pytest.mark.parametrize(
        "error",
        [
            InvalidPathError(Path("/nope"), "does not exist"),
            InvalidConfigError("workers", 0, "must be at least 1"),
        ],
    )
    def test_configuration_errors(self, error):
        assert isinstance(error, ConfigurationError)
        assert not isinstance(error, AnalysisError)


class TestMessages:
    def test_plain_message(self):
        assert str(QualityInsightError("boom")) == "boom"

    def test_details_are_appended(self):
        error = UnsupportedLanguageError("cobol", ["python", "go"])
        assert str(error) == "Unsupported language: cobol (language=cobol, supported=python, go)"
        assert error.message == "Unsupported language: cobol"

    def test_unsupported_format(self):
        error = UnsupportedFormatError(Path("out/report.bin"), "mutation", ("stryker", "pit"))
        assert error.message == "Unsupported mutation format: out/report.bin"
        assert error.details["supported"] == "stryker, pit"
        assert error.supported_formats == ["stryker", "pit"]

    def test_timeout(self):
        error = AnalysisTimeoutError(0.5, completed=2, total=9)
        assert error.message == "Analysis exceeded deadline of 0.5s"
        assert error.details == {"deadline_seconds": "0.5", "completed": "2", "total": "9"}

    def test_timeout_without_total(self):
        assert "total" not in AnalysisTimeoutError(30).details

    def test_invalid_config(self):
        error = InvalidConfigError("workers", 0, "must be at least 1")
        assert error.key == "workers"
        assert error.details["reason"] == "must be at least 1"

    def test_keyword_details_are_stringified_in_order(self):
        error = QualityInsightError("Cannot score", files=3, language="go", reason=None)
        assert error.details == {"files": "3", "language": "go"}
        assert str(error) == "Cannot score (files=3, language=go)"

    def test_paths_are_recorded_as_text(self):
        error = FileAccessError(Path("src/a.ts"), "denied")
        assert error.details == {"filepath": "src/a.ts", "reason": "denied"}
