"""Language adapter contract.

An adapter answers three questions about a repository: is this my language,
which test framework does it use, and which analysis capabilities can I
offer for it. Capabilities are plain callables; a ``None`` slot means the
capability does not exist for the language and callers skip it.
"""

from __future__ import annotations

import fnmatch
import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

from ..coverage import parse_coverage
from ..diagnostics import mock_warnings
from ..extraction import SYNTAXES, FunctionExtractor, TestExtractor
from ..extraction.cues import DEFAULT_CUES, CueTables
from ..formatters.json_formatter import to_json
from ..logging_config import get_logger
from ..models import FunctionInfo
from ..mutation import parse_mutation
from ..scenarios import GAP_EDGE, GAP_ERROR, GAP_HAPPY, GAP_SIDE_EFFECTS, ScenarioAnalyzer
from ..validation import validate_report

logger = get_logger(__name__)

PathLike = Union[str, Path]

# Placeholder body every generated test case carries
PENDING = "not implemented"


@dataclass(frozen=True)
class Capabilities:
    """Optional analysis functions an adapter exposes."""

    functions: Optional[Callable] = None
    tests: Optional[Callable] = None
    cases: Optional[Callable] = None
    coverage: Optional[Callable] = None
    mutation: Optional[Callable] = None
    mocks: Optional[Callable] = None
    report: Optional[Callable] = None
    schemas: Optional[Callable] = None

    def available(self) -> list[str]:
        return [f.name for f in fields(self) if getattr(self, f.name) is not None]


def case_title(function: FunctionInfo, gap: str) -> str:
    """Human title for a generated test covering ``gap``.

    Titles reuse the error and boundary vocabulary so the generated test
    closes the gap once it is filled in.
    """
    if gap == GAP_ERROR:
        if function.throws:
            return f"throws {function.throws[0]} on invalid input"
        return "rejects invalid input"
    if gap == GAP_EDGE:
        return "handles empty input"
    if gap == GAP_SIDE_EFFECTS:
        if function.side_effects:
            return f"verifies {function.side_effects[0].lower()} calls"
        return "verifies collaborator calls"
    return "returns the expected result"


def case_slug(title: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", title.lower()).strip("_")


def camel(name: str) -> str:
    parts = [p for p in re.split(r"[^A-Za-z0-9]+", name) if p]
    return "".join(p[:1].upper() + p[1:] for p in parts)


class LanguageAdapter(ABC):
    """Base class for per-language plugins.

    Subclasses set ``language`` (a key of ``SYNTAXES``), the manifest files
    that identify the ecosystem, and the conventional artifact locations.
    """

    language: str = ""
    manifests: tuple[str, ...] = ()
    coverage_artifacts: tuple[str, ...] = ()
    mutation_artifacts: tuple[str, ...] = ()
    comment_prefix: str = "//"
    # Lines emitted between the blocks of two functions
    block_separator: tuple[str, ...] = ("",)

    def __init__(self, cues: CueTables = DEFAULT_CUES, span_fallback_lines: int = 20) -> None:
        self.cues = cues
        self.syntax = SYNTAXES[self.language]
        self._functions = FunctionExtractor(self.syntax, cues, span_fallback_lines)
        self._tests = TestExtractor(self.syntax, cues, span_fallback_lines)
        self._cases = ScenarioAnalyzer(cues)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(language={self.language!r})"

    # -- detection ---------------------------------------------------------

    def detect(self, repo: PathLike) -> bool:
        """True when the repository carries this ecosystem's manifest or sources."""
        try:
            return self.detect_manifest(repo) or self.has_sources(repo)
        except OSError as e:
            logger.debug(f"{self.language} detection failed for {repo}: {e}")
            return False

    def detect_manifest(self, repo: PathLike) -> bool:
        root = Path(repo)
        try:
            names = os.listdir(root)
        except OSError:
            return False
        return any(fnmatch.fnmatch(name, pattern) for pattern in self.manifests for name in names)

    def has_sources(self, repo: PathLike) -> bool:
        root = Path(repo)
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(
                d for d in dirnames if d not in self.syntax.skip_dirs and not d.startswith(".")
            )
            rel_dir = Path(dirpath).relative_to(root)
            for filename in filenames:
                rel = (rel_dir / filename).as_posix()
                if self.syntax.is_source_file(rel) or self.syntax.is_test_file(rel):
                    return True
        return False

    @abstractmethod
    def detect_framework(self, repo: PathLike) -> Optional[str]:
        """Name of the test framework in use, or ``None`` if none is recognized."""
        pass

    # -- capabilities ------------------------------------------------------

    @property
    def capabilities(self) -> Capabilities:
        return Capabilities(
            functions=self._functions.extract,
            tests=self._tests.extract,
            cases=self._cases.analyze,
            coverage=parse_coverage,
            mutation=parse_mutation,
            mocks=mock_warnings,
            report=to_json,
            schemas=validate_report,
        )

    def find_artifact(self, repo: PathLike, kind: str) -> Optional[Path]:
        """First conventional coverage or mutation artifact present in ``repo``."""
        candidates = self.coverage_artifacts if kind == "coverage" else self.mutation_artifacts
        root = Path(repo)
        for rel in candidates:
            path = root / rel
            if path.is_file():
                logger.debug(f"Found {kind} artifact {path}")
                return path
        return None

    # -- test skeletons ----------------------------------------------------

    @abstractmethod
    def test_path_for(
        self, function: FunctionInfo, variant: str = "", framework: Optional[str] = None
    ) -> str:
        """Repository-relative path where tests for ``function`` conventionally live.

        ``variant`` is folded into the file name to propose a sibling file
        when the conventional one already exists.
        """
        pass

    def render_test_file(
        self,
        test_path: str,
        entries: Sequence[tuple[FunctionInfo, Sequence[str]]],
        framework: Optional[str] = None,
    ) -> str:
        """Source of a new test file with one pending case per gap."""
        lines = self._header(test_path, [fn for fn, _ in entries], framework)
        for index, (function, gaps) in enumerate(entries):
            if index:
                lines.extend(self.block_separator)
            lines.extend(self._function_block(function, gaps, framework))
        lines.extend(self._footer(framework))
        return "\n".join(lines) + "\n"

    @abstractmethod
    def _header(
        self, test_path: str, functions: Sequence[FunctionInfo], framework: Optional[str]
    ) -> list[str]:
        pass

    @abstractmethod
    def _function_block(
        self, function: FunctionInfo, gaps: Sequence[str], framework: Optional[str]
    ) -> list[str]:
        pass

    def _footer(self, framework: Optional[str]) -> list[str]:
        return []

    def _notes(self, function: FunctionInfo, gap: str) -> list[str]:
        """Comment lines describing what a generated case should check."""
        notes = []
        if gap == GAP_HAPPY and function.params:
            notes.append(f"call {function.name}({', '.join(function.params)}) with valid input")
        elif gap == GAP_SIDE_EFFECTS and function.side_effects:
            notes.append(f"side effects: {', '.join(function.side_effects)}")
        elif gap == GAP_ERROR and len(function.throws) > 1:
            notes.append(f"also raised: {', '.join(function.throws[1:])}")
        elif gap == GAP_EDGE:
            notes.append("empty, zero and missing values")
        return [f"{self.comment_prefix} {note}" for note in notes]


def read_text(path: Path) -> str:
    """Read a manifest for framework sniffing; unreadable files read as empty."""
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return ""


def any_file(root: Path, pattern: str, skip_dirs: Sequence[str] = ()) -> bool:
    """True when a file matching ``pattern`` exists anywhere under ``root``."""
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in skip_dirs and not d.startswith(".")]
        if any(fnmatch.fnmatch(name, pattern) for name in filenames):
            return True
    return False

