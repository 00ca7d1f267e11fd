"""Best-effort block span estimation.

Nothing here parses. Each estimator walks forward from a declaration keeping
a single running counter (brace depth, indentation, or ``do``/``end``
nesting) and stops when the counter returns to its starting value. When the
counter never closes, the span falls back to ``start_line + fallback``.
"""

from __future__ import annotations

import re
from bisect import bisect_right
from typing import Optional

# String literals and line comments, removed before counting delimiters
_LITERALS_RE = re.compile(
    r"//.*$|\"(?:\\.|[^\"\\])*\"|'(?:\\.|[^'\\])*'|`(?:\\.|[^`\\])*`"
)
_HASH_LITERALS_RE = re.compile(r"#.*$|\"(?:\\.|[^\"\\])*\"|'(?:\\.|[^'\\])*'")

_BODY_START_RE = re.compile(r"[{;]")

_RUBY_OPENER_RE = re.compile(
    r"^\s*(?:def|class|module|if|unless|case|while|until|for|begin)\b"
    r"|\bdo\s*(?:\|[^|]*\|)?\s*$"
    r"|=\s*(?:if|unless|case|begin)\b"
)
_RUBY_END_RE = re.compile(r"\bend\b")


class LineIndex:
    """Maps character offsets to 1-based line numbers for one file."""

    def __init__(self, content: str) -> None:
        self.content = content
        self.lines = content.split("\n")
        self._starts = [0]
        for match in re.finditer("\n", content):
            self._starts.append(match.end())

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def line_of(self, offset: int) -> int:
        return bisect_right(self._starts, offset)

    def line(self, number: int) -> str:
        return self.lines[number - 1]

    def text(self, start_line: int, end_line: int) -> str:
        return "\n".join(self.lines[start_line - 1 : end_line])

    def offset_of(self, line: int) -> int:
        return self._starts[line - 1]


def estimate_end_line(
    mode: str,
    index: LineIndex,
    start_line: int,
    body_from: int,
    fallback: int,
) -> int:
    """Estimate the last line of the block declared at ``start_line``.

    Args:
        mode: ``brace``, ``indent`` or ``ruby``
        index: Line index of the file
        start_line: 1-based line of the declaration
        body_from: Character offset where the body search begins
        fallback: Line offset used when the block never closes
    """
    if mode == "indent":
        end = _indent_end(index, start_line)
    elif mode == "ruby":
        end = _keyword_end(index, start_line)
    else:
        end = _brace_end(index, body_from)

    if end is None:
        return min(start_line + fallback, index.line_count)
    return max(end, start_line)


def _brace_end(index: LineIndex, body_from: int) -> Optional[int]:
    opener = _BODY_START_RE.search(index.content, body_from)
    if opener is None:
        return None
    first_line = index.line_of(opener.start())
    if opener.group() == ";":
        # Declaration without a block body (overload, expression body)
        return first_line

    depth = 0
    column = opener.start() - index.offset_of(first_line)
    for number in range(first_line, index.line_count + 1):
        line = index.line(number)
        if number == first_line:
            line = line[column:]
        line = _LITERALS_RE.sub("", line)
        for char in line:
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return number
    return None


def _indent_end(index: LineIndex, start_line: int) -> Optional[int]:
    header = index.line(start_line)
    base = len(header) - len(header.lstrip())

    # The signature may continue over several lines until its parens close
    depth = 0
    header_end = None
    for number in range(start_line, index.line_count + 1):
        line = _HASH_LITERALS_RE.sub("", index.line(number))
        depth += line.count("(") + line.count("[") - line.count(")") - line.count("]")
        if depth <= 0:
            header_end = number
            break
    if header_end is None:
        return None

    end = header_end
    for number in range(header_end + 1, index.line_count + 1):
        line = index.line(number)
        if not line.strip():
            continue
        if len(line) - len(line.lstrip()) <= base:
            break
        end = number
    return end


def _keyword_end(index: LineIndex, start_line: int) -> Optional[int]:
    depth = 0
    for number in range(start_line, index.line_count + 1):
        line = _HASH_LITERALS_RE.sub("", index.line(number))
        depth += len(_RUBY_OPENER_RE.findall(line))
        depth -= len(_RUBY_END_RE.findall(line))
        if depth <= 0:
            return number
    return None
