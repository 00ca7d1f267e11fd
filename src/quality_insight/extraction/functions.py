"""Regex-based function inventory.

Best-effort: declarations are found with the two patterns of the
language's syntax table, spans come from ``spans.estimate_end_line`` and the
classification comes from the injected cue tables.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from ..models import FunctionInfo
from .cues import DEFAULT_CUES, CueTables
from .spans import LineIndex, estimate_end_line
from .syntax import LanguageSyntax

_IDENT_RE = re.compile(r"[A-Za-z_$][\w$]*")


@dataclass
class FunctionExtractor:
    """Extracts ``FunctionInfo`` records from one source file's text."""

    syntax: LanguageSyntax
    cues: CueTables = field(default=DEFAULT_CUES)
    span_fallback_lines: int = 20

    def extract(self, content: str, path: str) -> list[FunctionInfo]:
        """Scan both declaration shapes and merge them in source order.

        Args:
            content: File content
            path: Repository-relative path recorded on every result

        Returns:
            Functions ordered by their declaration offset
        """
        index = LineIndex(content)
        private_from = self._private_markers(index)
        found: dict[tuple[int, str], tuple[int, FunctionInfo]] = {}

        for pattern in (self.syntax.declaration_pattern, self.syntax.expression_pattern):
            if not pattern:
                continue
            for match in re.finditer(pattern, content, re.MULTILINE):
                name = match.group("name")
                if self.syntax.skip_names and re.fullmatch(self.syntax.skip_names, name):
                    continue
                start_line = index.line_of(match.start("name"))
                key = (start_line, name)
                if key in found:
                    continue
                info = self._build(match, index, path, start_line, private_from)
                found[key] = (match.start(), info)

        return [info for _, info in sorted(found.values(), key=lambda item: item[0])]

    def _build(
        self,
        match: re.Match,
        index: LineIndex,
        path: str,
        start_line: int,
        private_from: list[tuple[int, int, int]],
    ) -> FunctionInfo:
        groups = match.groupdict()
        name = groups["name"]

        body_from = match.end("params") if groups.get("params") is not None else match.end()
        end_line = estimate_end_line(
            self.syntax.block_mode, index, start_line, body_from, self.span_fallback_lines
        )
        snippet = index.text(start_line, end_line)

        if groups.get("async") is not None:
            is_async = True
        elif self.syntax.async_pattern:
            is_async = re.search(self.syntax.async_pattern, match.group(0)) is not None
        else:
            is_async = False

        indent = len(groups.get("indent") or "")
        return FunctionInfo(
            name=name,
            file_path=path,
            start_line=start_line,
            end_line=end_line,
            params=self._params(groups.get("params") or groups.get("bare") or ""),
            is_exported=self._is_exported(name, groups.get("export"), start_line, indent, private_from),
            is_async=is_async,
            criticality=self.cues.criticality(name),
            category=self.cues.category(name),
            throws=self._throws(snippet),
            side_effects=self.cues.side_effects(snippet),
        )

    def _is_exported(
        self,
        name: str,
        export: Optional[str],
        line: int,
        indent: int,
        private_from: list[tuple[int, int, int]],
    ) -> bool:
        rule = self.syntax.export_rule
        if rule == "keyword":
            return bool(export) and any(k in export for k in self.syntax.export_keywords)
        if rule == "capitalized":
            return name[:1].isupper()
        if name.startswith("_"):
            return False
        # Ruby: a bare `private` line hides later defs at the same or deeper indent
        return not any(
            start < line < until and m_indent <= indent for start, m_indent, until in private_from
        )

    def _private_markers(self, index: LineIndex) -> list[tuple[int, int, int]]:
        """(line, indent, until_line) for each private marker in the file."""
        if not self.syntax.private_marker:
            return []
        # A class or module opened above the marker's indent ends its effect
        resets = [
            (index.line_of(m.start()), len(m.group(1)))
            for m in re.finditer(r"^([ \t]*)(?:class|module)\b", index.content, re.MULTILINE)
        ]
        markers: list[tuple[int, int, int]] = []
        for match in re.finditer(self.syntax.private_marker, index.content, re.MULTILINE):
            line = index.line_of(match.start())
            indent = len(match.group("indent"))
            until = min(
                (r_line for r_line, r_indent in resets if r_line > line and r_indent < indent),
                default=index.line_count + 1,
            )
            markers.append((line, indent, until))
        return markers

    def _params(self, raw: str) -> tuple[str, ...]:
        names: list[str] = []
        for item in _split_top_level(raw):
            item = re.sub(r"@\w+(?:\([^)]*\))?\s*", "", item).strip()
            if not item or item in ("*", "/", "..."):
                continue
            if self.syntax.param_name_last:
                idents = _IDENT_RE.findall(item.split("=")[0])
                name = idents[-1] if idents else ""
            else:
                # Drop defaults and type annotations
                idents = _IDENT_RE.findall(re.split(r"[=:]", item, maxsplit=1)[0])
                name = idents[0] if idents else ""
            if name and name not in self.syntax.implicit_params:
                names.append(name)
        return tuple(names)

    def _throws(self, snippet: str) -> tuple[str, ...]:
        labels: list[str] = []
        for pattern in self.syntax.throw_patterns:
            for match in re.finditer(pattern, snippet):
                label = match.groupdict().get("cls") or self.syntax.default_throw_label
                if label not in labels:
                    labels.append(label)
        return tuple(labels)


def _split_top_level(raw: str) -> list[str]:
    """Split on commas that are not nested inside brackets."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for char in raw:
        if char in "([{<":
            depth += 1
        elif char in ")]}>" and depth > 0:
            depth -= 1
        if char == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]
