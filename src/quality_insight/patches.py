"""Unified-diff proposals for missing tests.

Each patch creates one new test file holding pending cases for the gaps of
CRITICAL/HIGH functions. Functions are taken in report order, at most
``max_patches`` of them (never more than five), and grouped by the test
file they belong in.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Union

from .adapters.base import LanguageAdapter
from .config import MAX_PATCHES
from .logging_config import get_logger
from .models import FunctionInfo, FunctionReport
from .scenarios import needs_attention

logger = get_logger(__name__)

# Folded into the file name when the conventional test file already exists
SIBLING_VARIANT = "gaps"


def new_file_diff(path: str, content: str) -> str:
    """Unified diff that creates ``path`` with ``content``."""
    lines = content.splitlines()
    body = "\n".join(f"+{line}" for line in lines)
    return f"--- /dev/null\n+++ b/{path}\n@@ -0,0 +1,{len(lines)} @@\n{body}\n"


def build_patches(
    functions: Sequence[FunctionReport],
    adapter: LanguageAdapter,
    framework: Optional[str] = None,
    repo: Optional[Union[str, Path]] = None,
    max_patches: int = MAX_PATCHES,
) -> list[str]:
    """Propose test skeletons for the first ``max_patches`` risky functions with gaps."""
    limit = min(max_patches, MAX_PATCHES)
    flagged = [f for f in functions if needs_attention(f.function, f.scenarios)][:limit]

    groups: dict[str, list[tuple[FunctionInfo, tuple[str, ...]]]] = {}
    for entry in flagged:
        path = adapter.test_path_for(entry.function, framework=framework)
        if repo is not None and (Path(repo) / path).exists():
            path = adapter.test_path_for(entry.function, SIBLING_VARIANT, framework)
        groups.setdefault(path, []).append((entry.function, entry.scenarios.gaps))

    patches = []
    for path, entries in groups.items():
        content = adapter.render_test_file(path, entries, framework)
        patches.append(new_file_diff(path, content))
        logger.debug(f"Proposed {path} for {', '.join(fn.name for fn, _ in entries)}")
    return patches
