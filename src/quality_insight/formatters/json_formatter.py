"""JSON formatter: the serializable form of a ``QualityReport``.

Keys are sorted and reports carry no timestamps, so two runs over the same
files produce byte-identical output.
"""

import json
from dataclasses import asdict
from typing import Any

from ..models import QualityReport
from .base import BaseFormatter


def report_to_dict(report: QualityReport) -> dict[str, Any]:
    # str-valued enums serialize as their values
    return asdict(report)


def to_json(report: QualityReport) -> str:
    return json.dumps(report_to_dict(report), indent=2, sort_keys=True, ensure_ascii=False)


class JsonFormatter(BaseFormatter):
    """Render reports as JSON."""

    def render(self, report: QualityReport) -> None:
        print(self.format(report))

    def format(self, report: QualityReport) -> str:
        return to_json(report)
