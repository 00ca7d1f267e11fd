"""Ruby adapter (RSpec, Minitest).

No mutation engine output is supported for Ruby, so the ``mutation``
capability is absent.
"""

from __future__ import annotations

import dataclasses
import posixpath
from pathlib import Path, PurePosixPath
from typing import Optional, Sequence

from ..models import FunctionInfo
from .base import PENDING, Capabilities, LanguageAdapter, PathLike, camel, case_slug, case_title, read_text

# Source roots that mirror into spec/ or test/
_SOURCE_ROOTS = ("lib/", "app/")


class RubyAdapter(LanguageAdapter):
    language = "ruby"
    manifests = ("Gemfile", "*.gemspec")
    coverage_artifacts = ("coverage/.resultset.json", "coverage/coverage.json", "coverage/coverage.xml")
    comment_prefix = "#"

    @property
    def capabilities(self) -> Capabilities:
        return dataclasses.replace(super().capabilities, mutation=None)

    def detect_framework(self, repo: PathLike) -> Optional[str]:
        root = Path(repo)
        gemfile = read_text(root / "Gemfile") if (root / "Gemfile").is_file() else ""
        if (root / ".rspec").is_file() or (root / "spec").is_dir() or "rspec" in gemfile:
            return "rspec"
        if "minitest" in gemfile or (root / "test").is_dir():
            return "minitest"
        return None

    def test_path_for(
        self, function: FunctionInfo, variant: str = "", framework: Optional[str] = None
    ) -> str:
        rel = function.file_path
        for prefix in _SOURCE_ROOTS:
            if rel.startswith(prefix):
                rel = rel[len(prefix):]
                break
        path = PurePosixPath(rel)
        suffix = f"_{variant}" if variant else ""
        if framework == "minitest":
            return str(PurePosixPath("test") / path.parent / f"{path.stem}{suffix}_test.rb")
        return str(PurePosixPath("spec") / path.parent / f"{path.stem}{suffix}_spec.rb")

    def _header(
        self, test_path: str, functions: Sequence[FunctionInfo], framework: Optional[str]
    ) -> list[str]:
        lines = ['require "minitest/autorun"'] if framework == "minitest" else ['require "spec_helper"']
        test_dir = str(PurePosixPath(test_path).parent)
        for source in dict.fromkeys(fn.file_path for fn in functions):
            target = posixpath.relpath(str(PurePosixPath(source).with_suffix("")), test_dir)
            lines.append(f'require_relative "{target}"')
        lines.append("")
        return lines

    def _function_block(
        self, function: FunctionInfo, gaps: Sequence[str], framework: Optional[str]
    ) -> list[str]:
        if framework == "minitest":
            lines = [f"class {camel(function.name)}Test < Minitest::Test"]
            for index, gap in enumerate(gaps):
                if index:
                    lines.append("")
                lines.append(f"  def test_{case_slug(case_title(function, gap))}")
                lines.extend(f"    {note}" for note in self._notes(function, gap))
                lines.append(f'    skip "{PENDING}"')
                lines.append("  end")
            lines.append("end")
            return lines

        lines = [f'RSpec.describe "#{function.name}" do']
        for gap in gaps:
            lines.append(f'  it "{case_title(function, gap)}" do')
            lines.extend(f"    {note}" for note in self._notes(function, gap))
            lines.append(f'    skip "{PENDING}"')
            lines.append("  end")
        lines.append("end")
        return lines
