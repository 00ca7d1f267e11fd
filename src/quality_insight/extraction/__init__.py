"""Static extraction of function and test inventories from source text."""

from .cues import DEFAULT_CUES, CueTables, split_words
from .functions import FunctionExtractor
from .scanner import Deadline, RepositoryScanner, ScanResult
from .syntax import SYNTAXES, LanguageSyntax, get_syntax, source_stem
from .tests import TestExtractor

__all__ = [
    "CueTables",
    "DEFAULT_CUES",
    "Deadline",
    "FunctionExtractor",
    "LanguageSyntax",
    "RepositoryScanner",
    "SYNTAXES",
    "ScanResult",
    "TestExtractor",
    "get_syntax",
    "source_stem",
    "split_words",
]
