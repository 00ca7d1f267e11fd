"""Language syntax tables: the single source of truth for lexical patterns.

Adding a language:
  1. Add a LanguageSyntax entry to SYNTAXES below.
  2. Add an adapter in ``quality_insight.adapters`` that points at it.

Function patterns use named groups:
    indent  leading whitespace of the declaration line
    export  export/visibility keyword, when the language marks exports that way
    async   async keyword
    name    declared identifier
    params  parenthesized parameter list (without the parens)
    bare    unparenthesized parameter list (arrow functions, Ruby defs)

Test patterns capture ``title``. Assertion patterns capture ``matcher``, or
``expr`` for bare assert statements. Mock patterns capture an optional
``target`` and ``member``.
"""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional


@dataclass(frozen=True)
class LanguageSyntax:
    """Everything the extractor needs to know about a language."""

    name: str
    source_extensions: tuple[str, ...]

    # Two declaration shapes, scanned independently and merged in source order
    declaration_pattern: str
    expression_pattern: str = ""

    # brace | indent | ruby
    block_mode: str = "brace"

    # keyword: export group must contain one of export_keywords
    # capitalized: exported names start with an uppercase letter
    # underscore: names without a leading underscore are public
    export_rule: str = "keyword"
    export_keywords: tuple[str, ...] = ("export",)

    # Names the declaration patterns can capture that are not functions
    skip_names: str = ""
    # Searched in the declaration text when the pattern has no async group
    async_pattern: str = ""
    # Line that turns following definitions private (Ruby ``private``)
    private_marker: str = ""
    implicit_params: tuple[str, ...] = ()
    # Java declares the type first, so the parameter name is the last word
    param_name_last: bool = False

    throw_patterns: tuple[str, ...] = ()
    default_throw_label: str = "Error"

    # -- tests -------------------------------------------------------------

    test_file_globs: tuple[str, ...] = ()
    test_dir_names: tuple[str, ...] = ()
    test_name_prefixes: tuple[str, ...] = ()
    test_name_suffixes: tuple[str, ...] = ()

    test_patterns: tuple[str, ...] = ()
    grouping_patterns: tuple[str, ...] = ()
    hook_patterns: tuple[str, ...] = ()

    # grouping | test_name | class | none
    target_style: str = "grouping"

    # Subject calls followed by a matcher chain, e.g. expect(x).toBe(1)
    chain_entries: tuple[str, ...] = ()
    # dot: .not.toBe(...)   rspec: .to eq(...)
    chain_style: str = "dot"
    assertion_patterns: tuple[str, ...] = ()
    mock_patterns: tuple[tuple[str, str], ...] = ()

    skip_dirs: tuple[str, ...] = (
        "node_modules",
        "vendor",
        "dist",
        "build",
        "target",
        "coverage",
        "venv",
        ".venv",
        "__pycache__",
        ".git",
        ".tox",
        ".mypy_cache",
        ".pytest_cache",
        ".eggs",
        "third_party",
    )
    skip_file_suffixes: tuple[str, ...] = ()

    def is_source_file(self, rel_path: str) -> bool:
        path = PurePosixPath(rel_path)
        if path.suffix not in self.source_extensions:
            return False
        if any(path.name.endswith(suffix) for suffix in self.skip_file_suffixes):
            return False
        return not self.is_test_file(rel_path)

    def is_test_file(self, rel_path: str) -> bool:
        path = PurePosixPath(rel_path)
        if path.suffix not in self.source_extensions:
            return False
        if any(fnmatch.fnmatch(path.name, glob) for glob in self.test_file_globs):
            return True
        return any(part in self.test_dir_names for part in path.parts[:-1])

    def test_stem(self, rel_path: str) -> str:
        """File stem with the language's test affixes removed.

        ``src/math.test.ts`` -> ``math``, ``tests/test_math.py`` -> ``math``,
        ``CalculatorTest.java`` -> ``Calculator``.
        """
        stem = PurePosixPath(rel_path).name
        for ext in sorted(self.source_extensions, key=len, reverse=True):
            if stem.endswith(ext):
                stem = stem[: -len(ext)]
                break
        for suffix in self.test_name_suffixes:
            if stem.endswith(suffix) and len(stem) > len(suffix):
                stem = stem[: -len(suffix)]
                break
        for prefix in self.test_name_prefixes:
            if stem.startswith(prefix) and len(stem) > len(prefix):
                stem = stem[len(prefix):]
                break
        return stem


def source_stem(rel_path: str) -> str:
    """File name without directories or any extension."""
    return PurePosixPath(rel_path).name.split(".")[0]


# ── Re-usable building blocks ──────────────────────────────────────

_JS_QUOTED_TITLE = r"""\s*\(\s*(?P<q>['"`])(?P<title>.*?)(?P=q)"""

_BRACE_THROWS = (
    r"\bthrow\s+new\s+(?P<cls>\w+)",
    r"\bthrow\s+(?P<cls>[A-Z]\w*)\(",
)


# ── Language definitions ───────────────────────────────────────────

SYNTAXES = {
    "typescript": LanguageSyntax(
        name="typescript",
        source_extensions=(".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs"),
        declaration_pattern=(
            r"^(?P<indent>[ \t]*)(?P<export>export\s+(?:default\s+)?)?(?P<async>async\s+)?"
            r"function\s*\*?\s*(?P<name>[A-Za-z_$][\w$]*)\s*(?:<[^>()]*>)?\s*\((?P<params>[^)]*)\)"
        ),
        expression_pattern=(
            r"^(?P<indent>[ \t]*)(?P<export>export\s+)?(?:const|let|var)\s+(?P<name>[A-Za-z_$][\w$]*)"
            r"\s*(?::[^=\n]+)?=\s*(?P<async>async\s+)?(?:function\s*\*?\s*[\w$]*\s*)?(?:<[^>()]*>\s*)?"
            r"(?:\((?P<params>[^)]*)\)|(?P<bare>[A-Za-z_$][\w$]*))\s*(?::\s*[^=\n{]+)?\s*(?:=>|\{)"
        ),
        block_mode="brace",
        export_rule="keyword",
        export_keywords=("export",),
        throw_patterns=_BRACE_THROWS + (r"\bPromise\.reject\(\s*new\s+(?P<cls>\w+)",),
        test_file_globs=("*.test.*", "*.spec.*"),
        test_dir_names=("__tests__",),
        test_name_suffixes=(".test", ".spec"),
        test_patterns=(r"(?<![.\w$])(?:it|test)(?:\.(?:only|skip|concurrent|todo))?" + _JS_QUOTED_TITLE,),
        grouping_patterns=(r"(?<![.\w$])describe(?:\.(?:only|skip|concurrent))?" + _JS_QUOTED_TITLE,),
        hook_patterns=(r"(?<![.\w$])(?:beforeEach|afterEach|beforeAll|afterAll|before|after)\s*\(",),
        target_style="grouping",
        chain_entries=(r"\bexpect\s*(?=\()",),
        chain_style="dot",
        assertion_patterns=(
            r"\bassert\.(?P<matcher>\w+)\s*\(",
            r"(?<![.\w])(?P<matcher>assert)\s*\(",
            r"\.should\.(?:(?:not|be|have|been|deep|to|a|an)\.)*(?P<matcher>\w+)",
        ),
        mock_patterns=(
            ("mock", r"\b(?:vi|jest)\.mock\(\s*['\"](?P<target>[^'\"]+)"),
            ("mock", r"(?:(?:const|let|var)\s+(?P<target>[\w$]+)\s*(?::[^=\n]+)?=\s*)?\b(?:vi|jest)\.fn\("),
            ("spy", r"\b(?:vi|jest)\.spyOn\(\s*(?P<target>[\w$.]+)\s*,\s*['\"](?P<member>[\w$]+)"),
            ("stub", r"\bsinon\.stub\(\s*(?P<target>[\w$.]*)(?:\s*,\s*['\"](?P<member>[\w$]+))?"),
            ("spy", r"\bsinon\.spy\(\s*(?P<target>[\w$.]*)(?:\s*,\s*['\"](?P<member>[\w$]+))?"),
        ),
        skip_file_suffixes=(".d.ts", ".min.js", ".bundle.js", ".config.ts", ".config.js"),
    ),
    "python": LanguageSyntax(
        name="python",
        source_extensions=(".py",),
        declaration_pattern=(
            r"^(?P<indent>[ \t]*)(?P<async>async\s+)?def\s+(?P<name>\w+)\s*\((?P<params>[^)]*)\)"
        ),
        expression_pattern=r"^(?P<indent>)(?P<name>[A-Za-z_]\w*)\s*=\s*lambda\b(?P<bare>[^:\n]*):",
        block_mode="indent",
        export_rule="underscore",
        implicit_params=("self", "cls"),
        throw_patterns=(r"\braise\s+(?P<cls>[A-Za-z_][\w.]*)",),
        default_throw_label="Exception",
        test_file_globs=("test_*.py", "*_test.py"),
        test_name_prefixes=("test_",),
        test_name_suffixes=("_test",),
        test_patterns=(r"^(?P<indent>[ \t]*)(?:async\s+)?def\s+(?P<title>test\w*)\s*\(",),
        grouping_patterns=(r"^[ \t]*class\s+(?P<title>Test\w*)",),
        hook_patterns=(
            r"^[ \t]*def\s+(?:setUp|tearDown|setUpClass|tearDownClass|setup_method|teardown_method"
            r"|setup_function|teardown_function|setup_class|teardown_class)\b",
            r"^[ \t]*@pytest\.fixture\b",
        ),
        target_style="class",
        assertion_patterns=(
            r"^[ \t]*assert\s+(?P<expr>[^\n]+)",
            r"\bself\.(?P<matcher>assert\w+)\s*\(",
            r"\bpytest\.(?P<matcher>raises)\s*\(",
            r"\.(?P<matcher>assert_(?:called|not_called|any_call|has_calls)\w*)\s*\(",
        ),
        mock_patterns=(
            ("mock", r"(?:(?P<target>\w+)\s*=\s*)?\b(?:mock\.)?(?:Magic|Async|NonCallable)?Mock\("),
            ("mock", r"(?<![\w.])(?:mock\.|unittest\.mock\.)?patch(?:\.object)?\(\s*['\"]?(?P<target>[\w.]+)"),
            ("mock", r"\bmocker\.patch(?:\.object)?\(\s*['\"]?(?P<target>[\w.]+)"),
            ("spy", r"\bmocker\.spy\(\s*(?P<target>[\w.]+)(?:\s*,\s*['\"](?P<member>\w+))?"),
            ("stub", r"\bmonkeypatch\.setattr\(\s*['\"]?(?P<target>[\w.]+)"),
        ),
        skip_file_suffixes=("conftest.py", "setup.py"),
    ),
    "go": LanguageSyntax(
        name="go",
        source_extensions=(".go",),
        declaration_pattern=(
            r"^(?P<indent>)func\s+(?:\([^)]*\)\s*)?(?P<name>\w+)\s*(?:\[[^\]]*\])?\s*\((?P<params>[^)]*)\)"
        ),
        expression_pattern=r"^(?P<indent>)var\s+(?P<name>\w+)\s*=\s*func\s*\((?P<params>[^)]*)\)",
        block_mode="brace",
        export_rule="capitalized",
        throw_patterns=(
            r"\b(?:errors\.New|fmt\.Errorf)\(",
            r"\bpanic\(",
        ),
        default_throw_label="error",
        test_file_globs=("*_test.go",),
        test_name_suffixes=("_test",),
        test_patterns=(r"^func\s+(?P<title>Test\w+)\s*\(\s*\w+\s+\*testing\.T\s*\)",),
        grouping_patterns=(r"\bt\.Run\(\s*\"(?P<title>[^\"]*)\"",),
        hook_patterns=(r"^func\s+TestMain\s*\(", r"\bt\.Cleanup\(", r"\bdefer\s+\w*(?:[Tt]eardown|[Cc]leanup)\w*\("),
        target_style="test_name",
        assertion_patterns=(
            r"\b(?:assert|require)\.(?P<matcher>\w+)\s*\(",
            r"\bt\.(?P<matcher>Errorf|Fatalf)\s*\(",
            r"\.(?P<matcher>AssertCalled|AssertExpectations|AssertNumberOfCalls|AssertNotCalled)\s*\(",
            r"\.(?P<matcher>EXPECT)\(\)",
        ),
        mock_patterns=(
            ("mock", r"\bgomock\.NewController\("),
            ("mock", r"\b(?:\w+\.)?NewMock(?P<target>\w+)\("),
            ("mock", r"\bnew\((?:\w+\.)?(?P<target>Mock\w+)\)"),
            ("mock", r"&(?:\w+\.)?(?P<target>Mock\w+)\{"),
            ("stub", r"\.On\(\s*\"(?P<target>\w+)\""),
        ),
    ),
    "java": LanguageSyntax(
        name="java",
        source_extensions=(".java",),
        declaration_pattern=(
            r"^(?P<indent>[ \t]*)(?P<export>(?:public|protected|private)\s+)?"
            r"(?:(?:static|final|abstract|synchronized|default|native)\s+)*(?:<[^>]+>\s+)?"
            r"(?P<rtype>[\w.?]+(?:<[^\n(){};=]*>)?(?:\[\])*)\s+(?P<name>\w+)\s*\((?P<params>[^)]*)\)"
            r"\s*(?:throws\s+[\w.,\s]+)?\{"
        ),
        expression_pattern=(
            r"^(?P<indent>[ \t]*)(?P<export>(?:public|protected|private)\s+)?(?:(?:static|final)\s+)*"
            r"(?:Function|BiFunction|Supplier|Consumer|BiConsumer|Predicate|BiPredicate|UnaryOperator"
            r"|BinaryOperator|Runnable|Callable)\b[^=;\n]*?\s(?P<name>\w+)\s*=\s*"
            r"(?:\((?P<params>[^)]*)\)|(?P<bare>\w+))\s*->"
        ),
        block_mode="brace",
        export_rule="keyword",
        export_keywords=("public",),
        param_name_last=True,
        skip_names=r"[A-Z]\w*|if|for|while|switch|catch|return|new|else|synchronized|try|do",
        async_pattern=r"\b(?:CompletableFuture|Future|Mono|Flux)\s*<",
        throw_patterns=_BRACE_THROWS[:1] + (r"\bthrows\s+(?P<cls>\w+)",),
        default_throw_label="Exception",
        test_file_globs=("*Test.java", "*Tests.java", "*IT.java"),
        test_name_suffixes=("Tests", "Test", "IT"),
        test_patterns=(
            r"@(?:Test|ParameterizedTest|RepeatedTest)\b[^\n]*\n(?:[ \t]*@[^\n]*\n)*[ \t]*"
            r"(?:public\s+|protected\s+|private\s+)?(?:static\s+)?void\s+(?P<title>\w+)\s*\(",
        ),
        grouping_patterns=(r"@Nested\b",),
        hook_patterns=(r"@(?:BeforeEach|AfterEach|BeforeAll|AfterAll|Before|After|BeforeClass|AfterClass)\b",),
        target_style="none",
        chain_entries=(r"\bassertThat\s*(?=\()",),
        chain_style="dot",
        assertion_patterns=(
            r"\b(?:Assertions\.|Assert\.)?(?P<matcher>assert(?:Equals|NotEquals|True|False|Null|NotNull|Same"
            r"|NotSame|Throws|ThrowsExactly|ArrayEquals|IterableEquals|LinesMatch|InstanceOf|DoesNotThrow"
            r"|All|Timeout))\s*\(",
            r"\b(?P<matcher>assertThatThrownBy|assertThatExceptionOfType)\s*\(",
            r"\b(?:Mockito\.)?(?P<matcher>verify)\s*\(",
        ),
        mock_patterns=(
            ("mock", r"\b(?:Mockito\.)?mock\(\s*(?P<target>\w+)\.class"),
            ("spy", r"\b(?:Mockito\.)?spy\(\s*(?:new\s+)?(?P<target>\w+)"),
            ("stub", r"\b(?:Mockito\.)?when\(\s*(?P<target>[\w.]+)"),
            ("stub", r"\bdoReturn\([^)]*\)\.when\(\s*(?P<target>\w+)"),
        ),
    ),
    "ruby": LanguageSyntax(
        name="ruby",
        source_extensions=(".rb",),
        declaration_pattern=(
            r"^(?P<indent>[ \t]*)def\s+(?:self\.)?(?P<name>\w+[?!=]?)"
            r"(?:\s*\((?P<params>[^)]*)\)|[ \t]+(?P<bare>[^\n#;]+))?"
        ),
        expression_pattern=(
            r"^(?P<indent>[ \t]*)define_method\(?\s*:(?P<name>\w+[?!]?)\)?\s*(?:do|\{)"
            r"(?:\s*\|(?P<params>[^|]*)\|)?"
        ),
        block_mode="ruby",
        export_rule="underscore",
        private_marker=r"^(?P<indent>[ \t]*)private\s*$",
        throw_patterns=(r"\braise\s+(?P<cls>[A-Z][\w:]*)", r"\braise\b(?!\s+[A-Z])"),
        default_throw_label="RuntimeError",
        test_file_globs=("*_spec.rb", "*_test.rb", "test_*.rb"),
        test_name_prefixes=("test_",),
        test_name_suffixes=("_spec", "_test"),
        test_patterns=(
            r"^[ \t]*(?:it|specify|scenario)\s*\(?\s*(?P<q>['\"])(?P<title>.*?)(?P=q)",
            r"^[ \t]*def\s+(?P<title>test_\w+)",
        ),
        grouping_patterns=(
            r"^[ \t]*(?:RSpec\.)?(?:describe|context|feature)\s*\(?\s*"
            r"(?:(?P<q>['\"])(?P<title>.*?)(?P=q)|(?P<const>[\w:]+))",
        ),
        hook_patterns=(r"^[ \t]*(?:before|after|around)\b", r"^[ \t]*let!?\(", r"^[ \t]*def\s+(?:setup|teardown)\b"),
        target_style="grouping",
        chain_entries=(r"\bexpect\s*(?=[({])",),
        chain_style="rspec",
        assertion_patterns=(
            r"^[ \t]*(?P<matcher>assert(?:_\w+)?|refute(?:_\w+)?)\b",
            r"\bis_expected\.(?:to|not_to|to_not)\s+(?P<matcher>\w+)",
        ),
        mock_patterns=(
            ("mock", r"\b(?:instance_|class_|object_)?double\(\s*['\":]?(?P<target>[\w:]+)"),
            ("spy", r"\b(?:instance_|class_)?spy\(\s*['\":]?(?P<target>[\w:]+)"),
            ("stub", r"\ballow\(\s*(?P<target>[\w.:]+)\s*\)\s*\.to\s+receive"),
            ("mock", r"\bexpect\(\s*(?P<target>[\w.:]+)\s*\)\s*\.to\s+receive"),
            ("mock", r"\bMinitest::Mock\.new"),
            ("stub", r"\.stub\(\s*:(?P<target>\w+)"),
        ),
    ),
}


def get_syntax(language: str) -> Optional[LanguageSyntax]:
    return SYNTAXES.get(language)

