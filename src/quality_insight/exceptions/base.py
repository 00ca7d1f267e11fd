"""Root of the Quality Insight exception hierarchy."""

from typing import Any, Dict


class QualityInsightError(Exception):
    """Base exception for all Quality Insight errors.

    Keyword arguments become ``details``: stringified, in the order given,
    with ``None`` values left out. ``str()`` appends them to the message so
    one log line carries the file, format or setting at fault.
    """

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, str] = {k: str(v) for k, v in details.items() if v is not None}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        return f"{self.message} ({', '.join(f'{k}={v}' for k, v in self.details.items())})"
