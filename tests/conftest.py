"""Shared test fixtures for Quality Insight tests."""

import json
import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path_factory, monkeypatch):
    """Keep user-level config files and QUALITY_INSIGHT_* variables out of tests."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: home))
    for key in list(os.environ):
        if key.startswith("QUALITY_INSIGHT_"):
            monkeypatch.delenv(key)


def write_files(root: Path, files: dict) -> Path:
    """Create ``files`` (relative path -> text) under ``root``."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def make_repo(tmp_path):
    """Factory writing a repository tree into a fresh temporary directory."""

    def make(files: dict) -> Path:
        return write_files(tmp_path, files)

    return make


MATH_TS = """\
export function add(a: number, b: number): number {
  return a + b;
}

export function parseAmount(raw: string): number {
  if (!raw) {
    throw new Error('empty amount');
  }
  return Number(raw);
}

export const saveTotal = async (total: number) => {
  await fetch('/totals', { method: 'POST', body: String(total) });
};

function internalHelper() {
  return 1;
}
"""

MATH_TEST_TS = """\
import { describe, it, expect, beforeEach, vi } from 'vitest';
import { add, parseAmount } from './math';

describe('add', () => {
  beforeEach(() => {
    vi.clearAllMocks();
  });

  it('adds two numbers', () => {
    expect(add(1, 2)).toBe(3);
    expect(add(2, 2)).toEqual(4);
  });
});

describe('parseAmount', () => {
  it('parses a numeric string', () => {
    expect(parseAmount('12')).toBe(12);
  });

  it('throws on empty input', () => {
    expect(() => parseAmount('')).toThrow('empty amount');
  });
});
"""


@pytest.fixture
def ts_repo(tmp_path):
    """A small vitest repository with one source and one test file."""
    write_files(
        tmp_path,
        {
            "package.json": json.dumps({"name": "calc", "devDependencies": {"vitest": "^1.0.0"}}),
            "src/math.ts": MATH_TS,
            "src/math.test.ts": MATH_TEST_TS,
        },
    )
    return tmp_path


@pytest.fixture
def py_repo(tmp_path):
    """A pytest repository with a package under src/."""
    write_files(
        tmp_path,
        {
            "pyproject.toml": '[project]\nname = "ledger"\n\n[tool.pytest.ini_options]\ntestpaths = ["tests"]\n',
            "src/ledger/__init__.py": "",
            "src/ledger/accounts.py": (
                "def validate_account(number):\n"
                "    if not number:\n"
                "        raise ValueError('missing number')\n"
                "    return number.strip()\n"
                "\n"
                "\n"
                "def balance(entries):\n"
                "    return sum(entries)\n"
                "\n"
                "\n"
                "def _round(value):\n"
                "    return round(value, 2)\n"
            ),
            "tests/test_accounts.py": (
                "import pytest\n"
                "\n"
                "from ledger.accounts import balance, validate_account\n"
                "\n"
                "\n"
                "class TestBalance:\n"
                "    def test_sums_entries(self):\n"
                "        assert balance([1, 2]) == 3\n"
                "\n"
                "    def test_empty_entries(self):\n"
                "        assert balance([]) == 0\n"
            ),
        },
    )
    return tmp_path
