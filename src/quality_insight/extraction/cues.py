"""Keyword and pattern tables behind every lexical classification.

The tables are plain immutable data. ``CueTables`` bundles them with the pure
lookup functions that read them, and one instance is handed to the extractor
and the scenario analyzer at construction time. Overriding a table means
building a new instance, never mutating a shared one.

Name matching works on words, not raw substrings: ``parseConfig`` and
``parse_config`` both split into ``["parse", "config"]``. A word matches a
keyword when it is the keyword plus an optional common inflection, so
``validation`` matches ``validate`` but ``login`` does not match ``log``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ..models import Category, Criticality

_WORD_RE = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+|\d+")

_INFLECTIONS = frozenset(
    ("", "s", "es", "d", "ed", "r", "rs", "er", "ers", "ing", "ion", "ions", "ation", "or", "ors")
)


def split_words(text: str) -> list[str]:
    """Split identifiers and prose into lowercase words.

    >>> split_words("parseJSONConfig")
    ['parse', 'json', 'config']
    >>> split_words("test_add_empty_list")
    ['test', 'add', 'empty', 'list']
    """
    return [w.lower() for w in _WORD_RE.findall(text)]


def keyword_matches(word: str, keyword: str) -> bool:
    stems = (keyword, keyword[:-1]) if keyword.endswith("e") else (keyword,)
    return any(word.startswith(stem) and word[len(stem):] in _INFLECTIONS for stem in stems)


def first_keyword(words: list[str], keywords: tuple[str, ...]) -> Optional[str]:
    """Return the first keyword (in table order) matched by any word."""
    for keyword in keywords:
        if any(keyword_matches(word, keyword) for word in words):
            return keyword
    return None


# ---------------------------------------------------------------------------
# Default tables
# ---------------------------------------------------------------------------

CRITICAL_KEYWORDS = (
    "parse", "validate", "auth", "authenticate", "authorize", "security", "secure",
    "verify", "encrypt", "decrypt", "hash", "password", "token", "permission",
    "sanitize", "credential", "login", "payment", "charge", "signature",
)

HIGH_KEYWORDS = (
    "write", "save", "create", "delete", "update", "remove", "insert", "api",
    "fetch", "send", "request", "upload", "download", "post", "put", "publish",
    "execute", "process", "run", "analyze", "generate", "handle", "migrate",
)

MEDIUM_KEYWORDS = (
    "read", "get", "find", "format", "load", "search", "list", "query", "convert",
    "transform", "map", "filter", "render", "build", "compute", "calculate",
    "serialize", "normalize", "merge", "sort",
)

CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("parser", ("parse", "decode", "deserialize", "tokenize", "unmarshal", "lex")),
    ("validator", ("validate", "valid", "check", "verify", "assert", "ensure")),
    ("core", ("analyze", "generate", "run", "execute", "process", "handle", "compute", "calculate")),
    ("util", ("format", "convert", "map", "filter", "transform", "normalize", "serialize", "to")),
)

SIDE_EFFECT_VERBS = (
    "write", "create", "update", "delete", "save", "send", "log", "emit", "publish",
    "dispatch", "insert", "remove", "store", "persist", "notify", "post", "put",
    "upload", "record", "track", "enqueue", "flush",
)

ERROR_VOCABULARY = (
    "error", "throw", "raise", "reject", "fail", "failure", "invalid", "exception",
    "catch", "panic", "abort", "malformed", "unauthorized", "forbidden",
)

BOUNDARY_VOCABULARY = (
    "empty", "null", "undefined", "zero", "boundary", "boundaries", "limit", "edge",
    "none", "nil", "blank", "negative", "overflow", "max", "maximum", "min", "minimum",
)

ASSERTION_KINDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("throws", (
        "toThrow", "toThrowError", "toThrowErrorMatchingSnapshot", "rejects", "throws",
        "throw", "assertThrows", "assertRaises", "assertRaisesRegex", "raises",
        "raise_error", "assert_raises", "Error", "ErrorIs", "ErrorAs", "ErrorContains",
        "EqualError", "Panics", "PanicsWithValue", "assertThatThrownBy",
        "assertThatExceptionOfType", "isRejected", "rejectedWith",
    )),
    ("called_with", (
        "toHaveBeenCalledWith", "toHaveBeenLastCalledWith", "toHaveBeenNthCalledWith",
        "toBeCalledWith", "lastCalledWith", "calledWith", "calledOnceWith",
        "calledWithExactly", "assert_called_with", "assert_called_once_with",
        "assert_any_call", "assert_has_calls", "verify", "have_received", "receive",
        "AssertCalled", "AssertExpectations", "AssertNumberOfCalls", "EXPECT",
    )),
    ("called", (
        "toHaveBeenCalled", "toBeCalled", "toHaveBeenCalledTimes", "toBeCalledTimes",
        "called", "calledOnce", "calledTwice", "callCount", "assert_called",
        "assert_called_once", "assert_not_called", "AssertNotCalled",
    )),
    ("snapshot", ("toMatchSnapshot",)),
    ("definedness", (
        "toBeDefined", "toBeUndefined", "toBeNull", "toBeNaN", "exist", "exists",
        "Nil", "NotNil", "NotEmpty", "Empty", "assertNotNull", "assertNull",
        "assertIsNone", "assertIsNotNone", "be_nil", "isNotNull", "isNull", "is",
    )),
    ("truthiness", (
        "toBeTruthy", "toBeFalsy", "toBeTrue", "toBeFalse", "ok", "true", "false",
        "True", "False", "assertTrue", "assertFalse", "be_truthy", "be_falsey",
        "be_falsy", "assert", "isTrue", "isFalse", "refute",
    )),
    ("equality", (
        "toBe", "toEqual", "toStrictEqual", "toMatchObject", "toHaveLength",
        "toContain", "toContainEqual", "toHaveProperty", "toMatch", "toBeCloseTo",
        "toBeGreaterThan", "toBeGreaterThanOrEqual", "toBeLessThan",
        "toBeLessThanOrEqual", "toMatchInlineSnapshot", "toBeInstanceOf", "eq", "eql",
        "equal", "equals", "deepEqual", "strictEqual", "deepStrictEqual", "notEqual",
        "include", "lengthOf", "property", "members", "assertEqual", "assertEquals",
        "assertNotEqual", "assertSame", "assertArrayEquals", "assertIn", "assertNotIn",
        "assertDictEqual", "assertListEqual", "assertAlmostEqual", "assertGreater",
        "assertLess", "assertCountEqual", "assertRegex", "assertIsInstance",
        "isEqualTo", "isNotEqualTo", "containsExactly", "contains", "hasSize",
        "isGreaterThan", "isLessThan", "EqualValues", "Exactly", "Len", "Contains",
        "ElementsMatch", "JSONEq", "InDelta", "Greater", "Less", "Errorf", "Fatalf",
        "Equal", "NotEqual", "Same", "Subset", "Regexp", "IsType", "assertThat",
        "assert_equal", "assert_in_delta", "assert_includes", "assert_match",
        "match_array", "contain_exactly", "have_attributes", "be_within", "match",
        "be", "==", "in", "<", ">", "<=", ">=", "approx",
    )),
)

WEAK_KINDS = ("truthiness", "definedness", "snapshot")

SIDE_EFFECT_CUES: tuple[tuple[str, str], ...] = (
    ("File I/O", r"\bfs\.|\breadFile|\bwriteFile|\bopen\(|\bos\.(?:Open|Create|ReadFile|WriteFile)|"
                 r"\bioutil\.|\bFiles\.|\bFile(?:Reader|Writer|\.open|\.read|\.write)|\bPath\(.*\)\.(?:read|write)_"),
    ("HTTP", r"\bfetch\(|\baxios\b|\bhttps?\.(?:get|post|request|Get|Post|NewRequest)|\brequests\.|"
             r"\bhttpx\.|\bHttpClient\b|\burllib\b|\bNet::HTTP\b|\bRestTemplate\b|\bFaraday\b"),
    ("Console output", r"\bconsole\.\w+\(|\bprint\(|\bfmt\.Print|\bSystem\.(?:out|err)\.|\bputs\b|\blog\.Print"),
    ("Time-dependent", r"\bDate\.now\(|\bnew Date\(|\bdatetime\.(?:now|utcnow)\(|\btime\.(?:Now|time)\(|"
                       r"\bTime\.now\b|\bLocalDateTime\.now\(|\bInstant\.now\("),
    ("Random", r"\bMath\.random\(|\brandom\.\w+\(|\brand\.\w+\(|\bnew Random\(|\bSecureRandom\b|\buuid"),
    ("Database", r"\.query\(|\bcursor\.|\bsession\.(?:commit|add)\(|\bActiveRecord\b|\bjdbc\b|\.exec\(|\bdb\.\w+\("),
)


@dataclass(frozen=True)
class CueTables:
    """Immutable classification tables plus the lookups over them."""

    critical: tuple[str, ...] = CRITICAL_KEYWORDS
    high: tuple[str, ...] = HIGH_KEYWORDS
    medium: tuple[str, ...] = MEDIUM_KEYWORDS
    categories: tuple[tuple[str, tuple[str, ...]], ...] = CATEGORY_KEYWORDS
    side_effect_verbs: tuple[str, ...] = SIDE_EFFECT_VERBS
    error_vocabulary: tuple[str, ...] = ERROR_VOCABULARY
    boundary_vocabulary: tuple[str, ...] = BOUNDARY_VOCABULARY
    assertion_kinds: tuple[tuple[str, tuple[str, ...]], ...] = ASSERTION_KINDS
    weak_kinds: tuple[str, ...] = WEAK_KINDS
    side_effect_cues: tuple[tuple[str, str], ...] = SIDE_EFFECT_CUES
    _kind_index: dict = field(init=False, repr=False, compare=False, hash=False)

    def __post_init__(self) -> None:
        for category, _ in self.categories:
            Category(category)
        index: dict[str, str] = {}
        # Earlier kinds win on collisions
        for kind, names in self.assertion_kinds:
            for name in names:
                index.setdefault(name, kind)
        object.__setattr__(self, "_kind_index", index)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CueTables":
        """Build tables from a TOML-style mapping of lists and sub-tables."""
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key in ("categories", "assertion_kinds"):
                kwargs[key] = tuple((name, tuple(words)) for name, words in value.items())
            elif key == "side_effect_cues":
                kwargs[key] = tuple((label, str(pattern)) for label, pattern in value.items())
            else:
                kwargs[key] = tuple(value)
        return cls(**kwargs)

    # -- functions ---------------------------------------------------------

    def criticality(self, name: str) -> Criticality:
        """Classify by name; CRITICAL, HIGH and MEDIUM tables are checked in that order."""
        words = split_words(name)
        for level, keywords in (
            (Criticality.CRITICAL, self.critical),
            (Criticality.HIGH, self.high),
            (Criticality.MEDIUM, self.medium),
        ):
            if first_keyword(words, keywords):
                return level
        return Criticality.LOW

    def category(self, name: str) -> Category:
        words = split_words(name)
        for category, keywords in self.categories:
            if first_keyword(words, keywords):
                return Category(category)
        return Category.OTHER

    def is_side_effect_verb(self, name: str) -> bool:
        return first_keyword(split_words(name), self.side_effect_verbs) is not None

    def side_effects(self, snippet: str) -> tuple[str, ...]:
        return tuple(label for label, pattern in self.side_effect_cues if re.search(pattern, snippet))

    # -- tests -------------------------------------------------------------

    def mentions_error(self, title: str) -> bool:
        return first_keyword(split_words(title), self.error_vocabulary) is not None

    def mentions_boundary(self, title: str) -> bool:
        return first_keyword(split_words(title), self.boundary_vocabulary) is not None

    def assertion_kind(self, matcher: str) -> str:
        return self._kind_index.get(matcher, "other")

    def is_weak(self, kind: str) -> bool:
        return kind in self.weak_kinds


DEFAULT_CUES = CueTables()
