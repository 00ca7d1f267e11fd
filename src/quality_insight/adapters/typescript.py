"""TypeScript / JavaScript adapter (Vitest, Jest, Mocha)."""

from __future__ import annotations

import json
from pathlib import Path, PurePosixPath
from typing import Optional, Sequence

from ..logging_config import get_logger
from ..models import FunctionInfo
from .base import LanguageAdapter, PathLike, case_title, read_text

logger = get_logger(__name__)

# Config files win over package.json because they name the runner actually used
_CONFIG_FILES = (
    ("vitest", ("vitest.config.*", "vitest.workspace.*")),
    ("jest", ("jest.config.*",)),
    ("mocha", (".mocharc*",)),
)
_PACKAGES = ("vitest", "jest", "mocha")


class TypeScriptAdapter(LanguageAdapter):
    language = "typescript"
    manifests = ("package.json", "tsconfig.json")
    coverage_artifacts = (
        "coverage/coverage-summary.json",
        "coverage/lcov.info",
        "coverage/coverage-final.json",
        "coverage/cobertura-coverage.xml",
        "coverage/clover.xml",
    )
    mutation_artifacts = ("reports/mutation/mutation.json", "reports/mutation/mutation.txt")

    def detect_framework(self, repo: PathLike) -> Optional[str]:
        root = Path(repo)
        for framework, patterns in _CONFIG_FILES:
            if any(any(root.glob(pattern)) for pattern in patterns):
                return framework

        manifest = root / "package.json"
        if not manifest.is_file():
            return None
        try:
            package = json.loads(read_text(manifest) or "{}")
        except json.JSONDecodeError as e:
            logger.debug(f"Unreadable package.json in {root}: {e}")
            return None
        if not isinstance(package, dict):
            return None

        deps: dict = {}
        for key in ("devDependencies", "dependencies"):
            section = package.get(key)
            if isinstance(section, dict):
                deps.update(section)
        test_script = str((package.get("scripts") or {}).get("test", ""))
        for framework in _PACKAGES:
            if framework in deps or framework in test_script.split():
                return framework
        return None

    def test_path_for(
        self, function: FunctionInfo, variant: str = "", framework: Optional[str] = None
    ) -> str:
        path = PurePosixPath(function.file_path)
        stem = path.name.split(".")[0]
        infix = f".{variant}" if variant else ""
        return str(path.with_name(f"{stem}{infix}.test{path.suffix}"))

    def _header(
        self, test_path: str, functions: Sequence[FunctionInfo], framework: Optional[str]
    ) -> list[str]:
        names = ", ".join(dict.fromkeys(fn.name for fn in functions))
        module = PurePosixPath(functions[0].file_path).name.split(".")[0]
        lines = []
        if framework == "vitest":
            lines.append("import { describe, it } from 'vitest';")
        lines.append(f"import {{ {names} }} from './{module}';")
        lines.append("")
        return lines

    def _function_block(
        self, function: FunctionInfo, gaps: Sequence[str], framework: Optional[str]
    ) -> list[str]:
        lines = [f"describe('{function.name}', () => {{"]
        for gap in gaps:
            lines.extend(f"  {note}" for note in self._notes(function, gap))
            title = case_title(function, gap)
            # Mocha marks a test without a callback as pending
            if framework == "mocha":
                lines.append(f"  it('{title}');")
            else:
                lines.append(f"  it.todo('{title}');")
        lines.append("});")
        return lines
