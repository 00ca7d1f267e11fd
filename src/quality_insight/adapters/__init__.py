"""Language adapters: one uniform capability contract per ecosystem."""

from .base import Capabilities, LanguageAdapter
from .go import GoAdapter
from .java import JavaAdapter
from .python import PythonAdapter
from .registry import ADAPTERS, detect_adapter, get_adapter, supported_languages
from .ruby import RubyAdapter
from .typescript import TypeScriptAdapter

__all__ = [
    "ADAPTERS",
    "Capabilities",
    "GoAdapter",
    "JavaAdapter",
    "LanguageAdapter",
    "PythonAdapter",
    "RubyAdapter",
    "TypeScriptAdapter",
    "detect_adapter",
    "get_adapter",
    "supported_languages",
]
