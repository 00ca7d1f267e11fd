"""Configuration exceptions: paths and settings."""

from pathlib import Path
from typing import Any

from .base import QualityInsightError


class ConfigurationError(QualityInsightError):
    """Base class for configuration-related errors."""

    pass


class InvalidPathError(ConfigurationError):
    """Raised when a provided path is invalid."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Invalid path: {path}", path=path, reason=reason)
        self.path = path
        self.reason = reason


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            key=key,
            value=value,
            reason=reason,
        )
        self.key = key
        self.value = value
        self.reason = reason
