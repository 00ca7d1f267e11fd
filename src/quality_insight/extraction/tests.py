"""Lexical extraction of test cases, assertions and test doubles.

A test file is scanned in three passes over the same ``LineIndex``:
grouping blocks (``describe``, ``class TestX``, ``t.Run``), test blocks, and
test doubles. Assertions are then collected inside each test block's span.
Nothing is parsed; a test body is whatever ``estimate_end_line`` says it is.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import NamedTuple, Optional

from ..models import AssertionInfo, MockInfo, TestFileSummary, TestInfo
from .cues import DEFAULT_CUES, CueTables
from .spans import LineIndex, estimate_end_line
from .syntax import LanguageSyntax

_CHAIN_LINK_RE = re.compile(r"\s*\.\s*([A-Za-z_$][\w$]*)")
_RSPEC_LINK_RE = re.compile(r"\s*\.\s*(?:to|not_to|to_not)\b\s*\(?\s*(?P<matcher>[a-z_]\w*[?!]?)")
_IDENTIFIER_RE = re.compile(r"[A-Za-z_$][\w$]*[?!]?")

# Comparison operators inside a bare ``assert`` expression, most specific first
_COMPARISON_RE = re.compile(
    r"\bis\s+not\s+None\b|\bis\s+None\b|==|!=|<=|>=|(?<![-=<])<(?![<=])|(?<![-=>])>(?![>=])"
    r"|\bnot\s+in\b|\bin\b"
)
_ASSERT_MESSAGE_RE = re.compile(r""",\s*f?(['"]).*$""")

_DOUBLE_KINDS = ("mock", "stub")


class _Block(NamedTuple):
    title: str
    first: int  # first line, including decorators
    line: int  # declaration line
    end: int


@dataclass
class TestExtractor:
    """Extracts a ``TestFileSummary`` from one test file's text."""

    __test__ = False

    syntax: LanguageSyntax
    cues: CueTables = field(default=DEFAULT_CUES)
    span_fallback_lines: int = 20

    def extract(self, content: str, path: str) -> TestFileSummary:
        index = LineIndex(content)
        groups = self._blocks(index, self.syntax.grouping_patterns)
        blocks = self._blocks(index, self.syntax.test_patterns)
        hooks = sum(
            len(re.findall(pattern, content, re.MULTILINE)) for pattern in self.syntax.hook_patterns
        )

        doubles = self._doubles(index)
        owned: dict[int, list[tuple[int, str, str]]] = {}
        shared: list[tuple[int, str, str]] = []
        for double in doubles:
            owner = _innermost(blocks, double[0])
            if owner is None:
                shared.append(double)
            else:
                owned.setdefault(owner.line, []).append(double)

        tests: list[TestInfo] = []
        for block in blocks:
            assertions = tuple(self._assertions(index, block))
            verified = any(a.type in ("called", "called_with") for a in assertions)
            mocks = tuple(
                MockInfo(
                    kind=kind,
                    target=target,
                    file_path=path,
                    line=line,
                    test_name=block.title,
                    verified=verified,
                )
                for line, kind, target in owned.get(block.line, [])
            )
            kinds = {m.kind for m in mocks} | {kind for _, kind, _ in shared}
            tests.append(
                TestInfo(
                    name=block.title,
                    file_path=path,
                    line=block.line,
                    target_function=self._target(block, groups),
                    assertions=assertions,
                    has_spies="spy" in kinds,
                    has_mocks=any(kind in kinds for kind in _DOUBLE_KINDS),
                    mocks=mocks,
                )
            )

        any_verified = any(t.has_assertion_type("called", "called_with") for t in tests)
        shared_mocks = tuple(
            MockInfo(kind=kind, target=target, file_path=path, line=line, test_name="", verified=any_verified)
            for line, kind, target in shared
        )
        return TestFileSummary(
            file_path=path,
            tests=tuple(tests),
            grouping_blocks=len(groups),
            hooks=hooks,
            shared_mocks=shared_mocks,
        )

    # -- blocks ------------------------------------------------------------

    def _blocks(self, index: LineIndex, patterns: tuple[str, ...]) -> list[_Block]:
        found: dict[int, _Block] = {}
        for pattern in patterns:
            for match in re.finditer(pattern, index.content, re.MULTILINE):
                groups = match.groupdict()
                title = groups.get("title") or groups.get("const") or ""
                line = index.line_of(match.start("title") if groups.get("title") else match.start())
                if line in found:
                    continue
                end = estimate_end_line(
                    self.syntax.block_mode, index, line, match.end(), self.span_fallback_lines
                )
                found[line] = _Block(title, _decorated_start(index, line), line, end)
        return sorted(found.values(), key=lambda block: block.line)

    def _target(self, block: _Block, groups: list[_Block]) -> Optional[str]:
        style = self.syntax.target_style
        if style == "test_name":
            name = block.title[4:] if block.title.startswith("Test") else block.title
            return name.split("_")[0] or None
        if style not in ("grouping", "class"):
            return None

        enclosing = [g for g in groups if g.first <= block.line <= g.end and g.line != block.line]
        for group in sorted(enclosing, key=lambda g: g.line, reverse=True):
            target = _class_target(group.title) if style == "class" else _grouping_target(group.title)
            if target:
                return target
        return None

    # -- assertions --------------------------------------------------------

    def _assertions(self, index: LineIndex, block: _Block) -> list[AssertionInfo]:
        content = index.content
        start = index.offset_of(block.first)
        end = (
            index.offset_of(block.end + 1) if block.end < index.line_count else len(content)
        )

        found: dict[int, AssertionInfo] = {}
        for entry in self.syntax.chain_entries:
            for match in re.compile(entry, re.MULTILINE).finditer(content, start, end):
                for offset, matcher, kind in self._chain(content, match, end):
                    found.setdefault(offset, self._assertion(index, offset, matcher, kind))

        for pattern in self.syntax.assertion_patterns:
            for match in re.compile(pattern, re.MULTILINE).finditer(content, start, end):
                groups = match.groupdict()
                if groups.get("expr") is not None:
                    offset = match.start("expr")
                    matcher = _expression_matcher(groups["expr"])
                else:
                    offset = match.start("matcher")
                    matcher = groups["matcher"]
                found.setdefault(offset, self._assertion(index, offset, matcher))

        return [found[offset] for offset in sorted(found)]

    def _assertion(self, index: LineIndex, offset: int, matcher: str, kind: str = "") -> AssertionInfo:
        kind = kind or self.cues.assertion_kind(matcher)
        return AssertionInfo(
            type=kind,
            matcher=matcher,
            is_weak=self.cues.is_weak(kind),
            line=index.line_of(offset),
        )

    def _chain(self, content: str, entry: re.Match, end: int) -> list[tuple[int, str, str]]:
        """Matchers chained onto a subject call, as (offset, matcher, kind)."""
        pos = _balanced_close(content, entry.end(), end)
        if pos is None:
            return []

        if self.syntax.chain_style == "rspec":
            link = _RSPEC_LINK_RE.match(content, pos, end)
            if link is None:
                return []
            return [(link.start("matcher"), link.group("matcher"), "")]

        links: list[tuple[int, str, bool]] = []
        while True:
            link = _CHAIN_LINK_RE.match(content, pos, end)
            if link is None:
                break
            pos = link.end()
            called = pos < end and content[pos] == "("
            if called:
                after = _balanced_close(content, pos, end)
                links.append((link.start(1), link.group(1), True))
                if after is None:
                    break
                pos = after
            else:
                links.append((link.start(1), link.group(1), False))

        if not links:
            # Bare subject call, e.g. Hamcrest assertThat(x, is(y))
            name = content[entry.start():entry.end()].strip()
            return [(entry.start(), name, "")]

        matchers = [link for link in links if link[2]] or [links[-1]]
        modifiers = {name for _, name, called in links if not called}
        kind = "throws" if "rejects" in modifiers else ""
        return [(offset, name, kind) for offset, name, _ in matchers]

    # -- doubles -----------------------------------------------------------

    def _doubles(self, index: LineIndex) -> list[tuple[int, str, str]]:
        """(line, kind, target) for every test double, deduplicated per line."""
        found: dict[tuple[int, str], tuple[int, str, str]] = {}
        for kind, pattern in self.syntax.mock_patterns:
            for match in re.finditer(pattern, index.content, re.MULTILINE):
                groups = match.groupdict()
                target = groups.get("target") or ""
                if groups.get("member"):
                    target = f"{target}.{groups['member']}" if target else groups["member"]
                line = index.line_of(match.start())
                found.setdefault((line, target), (line, kind, target))
        return sorted(found.values())


def _decorated_start(index: LineIndex, line: int) -> int:
    first = line
    while first > 1 and index.line(first - 1).lstrip().startswith("@"):
        first -= 1
    return first


def _innermost(blocks: list[_Block], line: int) -> Optional[_Block]:
    containing = [b for b in blocks if b.first <= line <= b.end]
    return max(containing, key=lambda b: b.line) if containing else None


def _balanced_close(content: str, pos: int, end: int) -> Optional[int]:
    """Offset just past the bracket closing the one at ``pos``."""
    while pos < end and content[pos] in " \t":
        pos += 1
    if pos >= end or content[pos] not in "({":
        return None
    opener = content[pos]
    closer = ")" if opener == "(" else "}"
    depth = 0
    quote = ""
    i = pos
    while i < end:
        char = content[i]
        if quote:
            if char == "\\":
                i += 1
            elif char == quote:
                quote = ""
        elif char in "'\"`":
            quote = char
        elif char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return None


def _grouping_target(title: str) -> Optional[str]:
    """``describe('parseConfig')`` and ``describe '#save'`` name their subject."""
    candidate = title.strip()
    if "#" in candidate:
        candidate = candidate.rsplit("#", 1)[1]
    candidate = candidate.lstrip(".").rstrip("()").strip()
    if "::" in candidate:
        candidate = candidate.rsplit("::", 1)[1]
    return candidate if _IDENTIFIER_RE.fullmatch(candidate) else None


def _class_target(title: str) -> Optional[str]:
    """``TestParseConfig`` -> ``parse_config``."""
    name = title[4:] if title.startswith("Test") else title
    if name.endswith("Tests"):
        name = name[:-5]
    if not name:
        return None
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", name.lstrip("_")).lower() or None


def _expression_matcher(expr: str) -> str:
    """Reduce ``assert <expr>`` to its comparison operator.

    >>> _expression_matcher("add(1, 2) == 3")
    '=='
    >>> _expression_matcher("result is not None")
    'is'
    >>> _expression_matcher("ok")
    'assert'
    """
    expr = _ASSERT_MESSAGE_RE.sub("", expr)
    match = _COMPARISON_RE.search(expr)
    if match is None:
        return "assert"
    op = match.group(0)
    if op.startswith("is"):
        return "is"
    if op.startswith("not"):
        return "in"
    return op
