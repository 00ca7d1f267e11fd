"""Go adapter (``go test``)."""

from __future__ import annotations

import re
from pathlib import Path, PurePosixPath
from typing import Optional, Sequence

from ..models import FunctionInfo
from .base import PENDING, LanguageAdapter, PathLike, any_file, camel, case_title


class GoAdapter(LanguageAdapter):
    language = "go"
    manifests = ("go.mod",)
    coverage_artifacts = ("coverage.out", "cover.out", "c.out", "coverage.txt")
    mutation_artifacts = ("go-mutesting.txt", "mutesting.txt")

    def detect_framework(self, repo: PathLike) -> Optional[str]:
        root = Path(repo)
        if (root / "go.mod").is_file() or any_file(root, "*_test.go", self.syntax.skip_dirs):
            return "go test"
        return None

    def test_path_for(
        self, function: FunctionInfo, variant: str = "", framework: Optional[str] = None
    ) -> str:
        path = PurePosixPath(function.file_path)
        suffix = f"_{variant}" if variant else ""
        return str(path.with_name(f"{path.stem}{suffix}_test.go"))

    @staticmethod
    def package_name(file_path: str) -> str:
        """Package clause for a file: its directory name, ``main`` at the module root."""
        directory = PurePosixPath(file_path).parent.name
        name = re.sub(r"\W", "", directory.replace("-", "_")).lower()
        return name or "main"

    def _header(
        self, test_path: str, functions: Sequence[FunctionInfo], framework: Optional[str]
    ) -> list[str]:
        return [f"package {self.package_name(test_path)}", "", 'import "testing"', ""]

    def _function_block(
        self, function: FunctionInfo, gaps: Sequence[str], framework: Optional[str]
    ) -> list[str]:
        lines = [f"func Test{camel(function.name)}(t *testing.T) {{"]
        for gap in gaps:
            lines.append(f'\tt.Run("{case_title(function, gap)}", func(t *testing.T) {{')
            lines.extend(f"\t\t{note}" for note in self._notes(function, gap))
            lines.append(f'\t\tt.Skip("{PENDING}")')
            lines.append("\t})")
        lines.append("}")
        return lines
