"""Base formatter interface for quality report rendering."""

from abc import ABC, abstractmethod

from ..models import QualityReport


class BaseFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def render(self, report: QualityReport) -> None:
        """Render a report to the terminal."""

    @abstractmethod
    def format(self, report: QualityReport) -> str:
        """Return the formatted string representation of a report."""
