"""Coverage format detection and file-level entry point.

Detection order:
    1. File name and extension (``.out``, ``lcov``, ``jacoco``, ...)
    2. Content sniffing for ambiguous ``.xml`` / ``.json`` names

An artifact that matches neither raises ``UnsupportedFormatError``; there
is no best-effort default parser.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Union

from ..exceptions import FileAccessError, UnsupportedFormatError
from ..logging_config import get_logger
from ..models import Coverage
from .parsers import PARSERS

logger = get_logger(__name__)

SUPPORTED_FORMATS = tuple(PARSERS)


def detect_coverage_format(path: Union[str, Path], content: Optional[str] = None) -> Optional[str]:
    """Return the format name for a coverage artifact, or ``None``."""
    name = Path(path).name.lower()

    if name.endswith(".out"):
        return "go"
    if "lcov" in name or name.endswith(".info"):
        return "lcov"
    if "jacoco" in name:
        return "jacoco"
    if "cobertura" in name:
        return "cobertura"
    if "clover" in name:
        return "clover"
    if name == ".resultset.json" or "simplecov" in name:
        return "simplecov"
    if name in ("coverage-summary.json", "coverage-final.json"):
        return "istanbul"

    if content is None:
        return None
    return sniff_coverage_format(content)


def sniff_coverage_format(content: str) -> Optional[str]:
    """Guess the format from marker strings in the report body."""
    head = content.lstrip()[:4096]

    if head.startswith("<"):
        if "<report" in head and ("JACOCO" in head or "<sessioninfo" in head or "<counter" in content):
            return "jacoco"
        if "<coverage" in head and "<project" in head:
            return "clover"
        if "<coverage" in head and ("line-rate" in head or "cobertura" in head.lower()):
            return "cobertura"
        return None

    if head.startswith("{"):
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            return None
        return _sniff_json(data)

    if head.startswith("mode:"):
        return "go"
    if "SF:" in content and "end_of_record" in content:
        return "lcov"
    return None


def _sniff_json(data: object) -> Optional[str]:
    if not isinstance(data, dict) or not data:
        return None
    if "totals" in data and ("files" in data or "meta" in data):
        return "coveragepy"
    if isinstance(data.get("total"), dict) and "lines" in data["total"]:
        return "istanbul"
    if "coverage" in data and "meta" in data:
        return "simplecov"
    values = [v for v in data.values() if isinstance(v, dict)]
    if values and all("statementMap" in v for v in values):
        return "istanbul"
    if values and all("coverage" in v for v in values):
        return "simplecov"
    return None


def parse_coverage_text(content: str, fmt: str, source: Optional[str] = None) -> Coverage:
    """Parse report text already known to be in ``fmt``."""
    parser = PARSERS.get(fmt)
    if parser is None:
        raise UnsupportedFormatError(source or "<text>", "coverage", SUPPORTED_FORMATS)
    return parser(content, source)


def parse_coverage(path: Union[str, Path], fmt: Optional[str] = None) -> Coverage:
    """Detect the format of a coverage artifact and parse it.

    Args:
        path: Report file
        fmt: Force a format instead of detecting one

    Raises:
        FileAccessError: If the file cannot be read
        UnsupportedFormatError: If no supported format matches
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise FileAccessError(path, f"OS error: {e}")

    fmt = fmt or detect_coverage_format(path, content)
    if fmt is None:
        raise UnsupportedFormatError(path, "coverage", SUPPORTED_FORMATS)

    logger.info(f"Parsing {fmt} coverage from {path}")
    return parse_coverage_text(content, fmt, str(path))
