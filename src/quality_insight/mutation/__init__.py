"""Mutation result aggregator: engine output to the canonical four buckets."""

from .detection import SUPPORTED_FORMATS, detect_mutation_format, parse_mutation, parse_mutation_text
from .parsers import (
    PARSERS,
    parse_go_mutesting,
    parse_mutmut,
    parse_pit,
    parse_pit_stdout,
    parse_stryker,
    parse_stryker_text,
)

__all__ = [
    "PARSERS",
    "SUPPORTED_FORMATS",
    "detect_mutation_format",
    "parse_go_mutesting",
    "parse_mutation",
    "parse_mutation_text",
    "parse_mutmut",
    "parse_pit",
    "parse_pit_stdout",
    "parse_stryker",
    "parse_stryker_text",
]
