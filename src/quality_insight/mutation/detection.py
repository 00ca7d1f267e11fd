"""Mutation artifact detection and file-level entry point."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Union

from ..exceptions import FileAccessError, UnsupportedFormatError
from ..logging_config import get_logger
from ..models import MutationResult
from .parsers import MUTMUT_HEADING_RE, PARSERS

logger = get_logger(__name__)

SUPPORTED_FORMATS = tuple(PARSERS)


def detect_mutation_format(path: Union[str, Path], content: str) -> Optional[str]:
    """Return the parser name for a mutation artifact, or ``None``.

    XML and JSON are recognized by their structure; plain text by the
    marker lines each engine prints.
    """
    name = Path(path).name.lower()
    head = content.lstrip()[:4096]

    if head.startswith("<"):
        return "pit" if "<mutations" in head else None

    if head.startswith("{"):
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            return None
        files = data.get("files") if isinstance(data, dict) else None
        if isinstance(files, dict) and all(isinstance(f, dict) and "mutants" in f for f in files.values()):
            return "stryker"
        return None

    if "The mutation score is" in content or any(
        line.startswith(('PASS "', 'FAIL "')) for line in content.splitlines()
    ):
        return "go-mutesting"
    if ">> Line " in content or ">> Generated " in content or "> KILLED " in content:
        return "pit-stdout"
    if "__mutmut_" in content or "\U0001F389" in content or "mutmut" in name:
        return "mutmut"
    if MUTMUT_HEADING_RE.search(content):
        return "mutmut"
    if "All files" in content and "# killed" in content.lower():
        return "stryker-text"
    if "stryker" in name or "Mutation score" in content:
        return "stryker-text"
    if "Killed" in content and ("Survived" in content or "Suspicious" in content):
        return "mutmut"
    return None


def parse_mutation_text(
    content: str, fmt: str, threshold: float = 0.7, source: Optional[str] = None
) -> MutationResult:
    parser = PARSERS.get(fmt)
    if parser is None:
        raise UnsupportedFormatError(source or "<text>", "mutation", SUPPORTED_FORMATS)
    return parser(content, threshold, source)


def parse_mutation(
    path: Union[str, Path], threshold: float = 0.7, fmt: Optional[str] = None
) -> MutationResult:
    """Detect the engine behind a mutation artifact and aggregate it.

    Raises:
        FileAccessError: If the file cannot be read
        UnsupportedFormatError: If no supported engine output matches
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise FileAccessError(path, f"OS error: {e}")

    fmt = fmt or detect_mutation_format(path, content)
    if fmt is None:
        raise UnsupportedFormatError(path, "mutation", SUPPORTED_FORMATS)

    logger.info(f"Parsing {fmt} mutation results from {path}")
    return parse_mutation_text(content, fmt, threshold, str(path))
