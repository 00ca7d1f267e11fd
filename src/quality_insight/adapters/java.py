"""Java adapter (JUnit 5, JUnit 4, TestNG)."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Optional, Sequence

from ..models import FunctionInfo
from .base import PENDING, LanguageAdapter, PathLike, any_file, camel, case_title, read_text

_BUILD_FILES = ("pom.xml", "build.gradle", "build.gradle.kts")
_MAIN_ROOT = "src/main/java/"
_TEST_ROOT = "src/test/java/"

_IMPORTS = {
    "junit5": ("org.junit.jupiter.api.Disabled", "org.junit.jupiter.api.Test"),
    "junit4": ("org.junit.Ignore", "org.junit.Test"),
    "testng": ("org.testng.annotations.Test",),
}


class JavaAdapter(LanguageAdapter):
    language = "java"
    manifests = _BUILD_FILES
    coverage_artifacts = (
        "target/site/jacoco/jacoco.xml",
        "build/reports/jacoco/test/jacocoTestReport.xml",
        "target/site/cobertura/coverage.xml",
    )
    mutation_artifacts = ("target/pit-reports/mutations.xml", "build/reports/pitest/mutations.xml")

    def detect_framework(self, repo: PathLike) -> Optional[str]:
        root = Path(repo)
        build = "\n".join(read_text(root / name) for name in _BUILD_FILES if (root / name).is_file())
        if "junit-jupiter" in build or "org.junit.jupiter" in build:
            return "junit5"
        if "testng" in build.lower():
            return "testng"
        if "junit" in build:
            return "junit4"
        if any_file(root, "*Test.java", self.syntax.skip_dirs):
            return "junit"
        return None

    def test_path_for(
        self, function: FunctionInfo, variant: str = "", framework: Optional[str] = None
    ) -> str:
        path = PurePosixPath(function.file_path)
        name = f"{path.stem}{camel(variant)}Test.java"
        directory = str(path.parent)
        if function.file_path.startswith(_MAIN_ROOT):
            directory = _TEST_ROOT + directory[len(_MAIN_ROOT):]
        return str(PurePosixPath(directory) / name)

    @staticmethod
    def package_name(test_path: str) -> Optional[str]:
        if not test_path.startswith(_TEST_ROOT):
            return None
        parts = PurePosixPath(test_path[len(_TEST_ROOT):]).parent.parts
        return ".".join(parts) or None

    def _header(
        self, test_path: str, functions: Sequence[FunctionInfo], framework: Optional[str]
    ) -> list[str]:
        lines = []
        package = self.package_name(test_path)
        if package:
            lines.extend([f"package {package};", ""])
        lines.extend(f"import {name};" for name in _IMPORTS.get(framework or "", _IMPORTS["junit5"]))
        lines.append("")
        visibility = "public " if framework in ("junit4", "testng") else ""
        lines.append(f"{visibility}class {PurePosixPath(test_path).stem} {{")
        lines.append("")
        return lines

    def _function_block(
        self, function: FunctionInfo, gaps: Sequence[str], framework: Optional[str]
    ) -> list[str]:
        lines = []
        for index, gap in enumerate(gaps):
            if index:
                lines.append("")
            title = case_title(function, gap)
            if framework == "testng":
                lines.append(f'    @Test(enabled = false, description = "{PENDING}")')
            elif framework == "junit4":
                lines.append("    @Test")
                lines.append(f'    @Ignore("{PENDING}")')
            else:
                lines.append("    @Test")
                lines.append(f'    @Disabled("{PENDING}")')
            visibility = "public " if framework in ("junit4", "testng") else ""
            method = function.name + camel(title)
            lines.append(f"    {visibility}void {method}() {{")
            lines.extend(f"        {note}" for note in self._notes(function, gap))
            lines.append("    }")
        return lines

    def _footer(self, framework: Optional[str]) -> list[str]:
        return ["}"]
