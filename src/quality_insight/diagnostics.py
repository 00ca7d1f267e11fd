"""Per-test warnings: weak assertions and unverified or excessive test doubles."""

from __future__ import annotations

from typing import Iterable

from .models import TestFileSummary, TestInfo

# More doubles than this in one test usually means the unit is not isolated
MAX_DOUBLES_PER_TEST = 3


def weak_assertion_warnings(tests: Iterable[TestInfo]) -> list[str]:
    """One warning per truthiness, definedness or snapshot assertion."""
    return [
        f"{test.file_path}: {test.name} uses {assertion.matcher} (line {assertion.line})"
        for test in tests
        for assertion in test.assertions
        if assertion.is_weak
    ]


def mock_warnings(test_files: Iterable[TestFileSummary]) -> list[str]:
    """Over-mocking warnings.

    A double is flagged when no interaction assertion (``called`` or
    ``called_with``) ever checks it, and a test is flagged when it builds
    more than ``MAX_DOUBLES_PER_TEST`` doubles.
    """
    warnings: list[str] = []
    for summary in test_files:
        for test in summary.tests:
            if len(test.mocks) > MAX_DOUBLES_PER_TEST:
                warnings.append(
                    f"{summary.file_path}: {test.name} uses {len(test.mocks)} test doubles (line {test.line})"
                )
            for mock in test.mocks:
                if not mock.verified:
                    warnings.append(
                        f"{summary.file_path}: {test.name} creates {mock.kind} "
                        f"{mock.target or '<anonymous>'} (line {mock.line}) without verifying its calls"
                    )
        for mock in summary.shared_mocks:
            if not mock.verified:
                warnings.append(
                    f"{summary.file_path}: shared {mock.kind} {mock.target or '<anonymous>'} "
                    f"(line {mock.line}) is never verified"
                )
    return warnings
