"""Function to test association.

Each test is attached using the first rule of the chain that yields any
candidate, most specific first:

    1. the test's declared target equals the function name
    2. the function name appears in the test title (case-insensitive)
    3. the test file's stem, without test affixes, equals the source file's stem
    4. the source file's stem appears somewhere in the test file path

A test that matches nothing is kept in the report but attached to no
function. Reordering the chain changes which function a shared-fixture
test attaches to.
"""

from __future__ import annotations

import dataclasses
from typing import Callable, Iterable, Sequence

from .extraction.syntax import LanguageSyntax, source_stem
from .logging_config import get_logger
from .models import FunctionInfo, TestInfo

logger = get_logger(__name__)

FunctionKey = tuple[str, str]
Rule = Callable[[FunctionInfo, TestInfo], bool]


class TestMatcher:
    """Joins a function inventory with a test inventory."""

    __test__ = False

    def __init__(self, syntax: LanguageSyntax) -> None:
        self.syntax = syntax
        self.rules: tuple[tuple[str, Rule], ...] = (
            ("target", self._by_target),
            ("title", self._by_title),
            ("file_stem", self._by_file_stem),
            ("path", self._by_path),
        )

    def match(
        self, functions: Sequence[FunctionInfo], tests: Iterable[TestInfo]
    ) -> tuple[dict[FunctionKey, list[TestInfo]], list[TestInfo]]:
        """Attach every test to the functions of its first matching rule.

        Returns:
            (tests per function key, every test with ``target_function``
            filled in where a rule resolved one)
        """
        matched: dict[FunctionKey, list[TestInfo]] = {f.key: [] for f in functions}
        resolved: list[TestInfo] = []

        for test in tests:
            candidates: list[FunctionInfo] = []
            for rule_name, rule in self.rules:
                candidates = [f for f in functions if rule(f, test)]
                if candidates:
                    logger.debug(f"{test.file_path}::{test.name} matched by {rule_name}")
                    break

            if candidates and test.target_function is None:
                test = dataclasses.replace(test, target_function=candidates[0].name)
            resolved.append(test)
            for function in candidates:
                matched[function.key].append(test)

        return matched, resolved

    # -- rules -------------------------------------------------------------

    @staticmethod
    def _by_target(function: FunctionInfo, test: TestInfo) -> bool:
        return test.target_function is not None and test.target_function == function.name

    @staticmethod
    def _by_title(function: FunctionInfo, test: TestInfo) -> bool:
        return function.name.lower() in test.name.lower()

    def _by_file_stem(self, function: FunctionInfo, test: TestInfo) -> bool:
        return source_stem(function.file_path) == self.syntax.test_stem(test.file_path)

    @staticmethod
    def _by_path(function: FunctionInfo, test: TestInfo) -> bool:
        return source_stem(function.file_path).lower() in test.file_path.lower()


def match_tests(
    functions: Sequence[FunctionInfo], tests: Iterable[TestInfo], syntax: LanguageSyntax
) -> tuple[dict[FunctionKey, list[TestInfo]], list[TestInfo]]:
    return TestMatcher(syntax).match(functions, tests)
