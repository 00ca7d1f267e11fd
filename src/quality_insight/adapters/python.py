"""Python adapter (pytest, unittest)."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Optional, Sequence

from ..models import FunctionInfo
from .base import PENDING, LanguageAdapter, PathLike, camel, case_slug, case_title, read_text

# (file, marker) pairs; an empty marker means the file alone is enough
_PYTEST_MARKERS = (
    ("pytest.ini", ""),
    ("conftest.py", ""),
    ("tests/conftest.py", ""),
    ("pyproject.toml", "[tool.pytest"),
    ("setup.cfg", "[tool:pytest]"),
    ("tox.ini", "[pytest]"),
)
_DEPENDENCY_FILES = (
    "requirements.txt",
    "requirements-dev.txt",
    "requirements-test.txt",
    "pyproject.toml",
    "setup.py",
    "Pipfile",
)


class PythonAdapter(LanguageAdapter):
    language = "python"
    manifests = ("pyproject.toml", "setup.py", "setup.cfg", "requirements.txt", "Pipfile")
    coverage_artifacts = ("coverage.xml", "coverage.json", "coverage.lcov", "htmlcov/coverage.xml")
    mutation_artifacts = ("mutmut-results.txt", "mutants/results.txt")
    comment_prefix = "#"
    block_separator = ()

    def detect_framework(self, repo: PathLike) -> Optional[str]:
        root = Path(repo)
        for name, marker in _PYTEST_MARKERS:
            path = root / name
            if path.is_file() and (not marker or marker in read_text(path)):
                return "pytest"
        for name in _DEPENDENCY_FILES:
            path = root / name
            if path.is_file() and "pytest" in read_text(path):
                return "pytest"

        for directory in ("tests", "test"):
            test_dir = root / directory
            if not test_dir.is_dir():
                continue
            for path in sorted(test_dir.rglob("*.py")):
                content = read_text(path)
                if "import unittest" in content or "from unittest" in content:
                    return "unittest"
        return None

    def test_path_for(
        self, function: FunctionInfo, variant: str = "", framework: Optional[str] = None
    ) -> str:
        stem = PurePosixPath(function.file_path).stem
        if stem == "__init__":
            stem = PurePosixPath(function.file_path).parent.name or "package"
        suffix = f"_{variant}" if variant else ""
        return f"tests/test_{stem}{suffix}.py"

    @staticmethod
    def module_path(file_path: str) -> str:
        """Dotted import path of a source file, ignoring a leading ``src/``."""
        parts = list(PurePosixPath(file_path).with_suffix("").parts)
        if parts and parts[0] == "src":
            parts = parts[1:]
        if parts and parts[-1] == "__init__":
            parts = parts[:-1]
        return ".".join(parts)

    def _header(
        self, test_path: str, functions: Sequence[FunctionInfo], framework: Optional[str]
    ) -> list[str]:
        lines = ["import unittest" if framework == "unittest" else "import pytest", ""]
        by_module: dict[str, list[str]] = {}
        for fn in functions:
            names = by_module.setdefault(self.module_path(fn.file_path), [])
            if fn.name not in names:
                names.append(fn.name)
        for module, names in by_module.items():
            lines.append(f"from {module} import {', '.join(names)}")
        return lines

    def _function_block(
        self, function: FunctionInfo, gaps: Sequence[str], framework: Optional[str]
    ) -> list[str]:
        if framework == "unittest":
            lines = ["", "", f"class Test{camel(function.name)}(unittest.TestCase):"]
            for index, gap in enumerate(gaps):
                if index:
                    lines.append("")
                lines.append(f"    def test_{case_slug(case_title(function, gap))}(self):")
                lines.extend(f"        {note}" for note in self._notes(function, gap))
                lines.append(f'        self.skipTest("{PENDING}")')
            return lines

        lines = []
        for gap in gaps:
            lines.extend(["", ""])
            lines.append(f"def test_{function.name}_{case_slug(case_title(function, gap))}():")
            lines.extend(f"    {note}" for note in self._notes(function, gap))
            lines.append(f'    pytest.skip("{PENDING}")')
        return lines

    def _footer(self, framework: Optional[str]) -> list[str]:
        if framework == "unittest":
            return ["", "", 'if __name__ == "__main__":', "    unittest.main()"]
        return []
