"""Coverage format normalizer: native reports to the canonical ``Coverage`` model."""

from .detection import (
    SUPPORTED_FORMATS,
    detect_coverage_format,
    parse_coverage,
    parse_coverage_text,
    sniff_coverage_format,
)
from .parsers import (
    PARSERS,
    parse_clover,
    parse_cobertura,
    parse_coveragepy,
    parse_go,
    parse_istanbul,
    parse_jacoco,
    parse_lcov,
    parse_simplecov,
)

__all__ = [
    "PARSERS",
    "SUPPORTED_FORMATS",
    "detect_coverage_format",
    "parse_clover",
    "parse_cobertura",
    "parse_coverage",
    "parse_coverage_text",
    "parse_coveragepy",
    "parse_go",
    "parse_istanbul",
    "parse_jacoco",
    "parse_lcov",
    "parse_simplecov",
    "sniff_coverage_format",
]
