"""Adapter resolution.

Adapters are probed in a fixed order, in two passes: first for an
ecosystem manifest at the repository root, then for source files anywhere
in the tree. A repository carrying markers of two ecosystems therefore
resolves to the same adapter on every run.
"""

from __future__ import annotations

from typing import Optional

from ..exceptions import UnsupportedLanguageError
from ..extraction.cues import DEFAULT_CUES, CueTables
from ..logging_config import get_logger
from .base import LanguageAdapter, PathLike
from .go import GoAdapter
from .java import JavaAdapter
from .python import PythonAdapter
from .ruby import RubyAdapter
from .typescript import TypeScriptAdapter

logger = get_logger(__name__)

ADAPTERS: tuple[type[LanguageAdapter], ...] = (
    PythonAdapter,
    TypeScriptAdapter,
    JavaAdapter,
    GoAdapter,
    RubyAdapter,
)

_ALIASES = {
    "javascript": "typescript",
    "js": "typescript",
    "ts": "typescript",
    "react": "typescript",
    "py": "python",
    "golang": "go",
    "rb": "ruby",
    "kotlin": "java",
}


def supported_languages() -> list[str]:
    return [adapter.language for adapter in ADAPTERS]


def get_adapter(
    language: str, cues: CueTables = DEFAULT_CUES, span_fallback_lines: int = 20
) -> LanguageAdapter:
    """Instantiate the adapter for ``language`` (aliases accepted).

    Raises:
        UnsupportedLanguageError: If no adapter handles the language
    """
    name = _ALIASES.get(language.lower(), language.lower())
    for adapter_cls in ADAPTERS:
        if adapter_cls.language == name:
            return adapter_cls(cues, span_fallback_lines)
    raise UnsupportedLanguageError(language, supported_languages())


def detect_adapter(
    repo: PathLike, cues: CueTables = DEFAULT_CUES, span_fallback_lines: int = 20
) -> Optional[LanguageAdapter]:
    """Return the first adapter that recognizes ``repo``, or ``None``."""
    adapters = [adapter_cls(cues, span_fallback_lines) for adapter_cls in ADAPTERS]

    for adapter in adapters:
        try:
            if adapter.detect_manifest(repo):
                logger.info(f"Detected {adapter.language} from its manifest")
                return adapter
        except OSError as e:
            logger.debug(f"{adapter.language} manifest probe failed: {e}")

    for adapter in adapters:
        if adapter.detect(repo):
            logger.info(f"Detected {adapter.language} from source files")
            return adapter

    logger.info(f"No language adapter recognized {repo}")
    return None
