"""Tests for extraction/tests.py - test blocks, assertions and test doubles."""

from quality_insight.extraction import SYNTAXES, TestExtractor
from quality_insight.models import FunctionInfo
from quality_insight.scenarios import ScenarioAnalyzer

TS_TESTS = """\
import { describe, it, expect, beforeEach, vi } from 'vitest';
import { saveUser, sendPayload, loadUser } from './users';

describe('saveUser', () => {
  beforeEach(() => {
    vi.resetAllMocks();
  });

  it('stores the user', () => {
    const repo = vi.fn();
    saveUser(repo, { id: 1 });
    expect(repo).toBeDefined();
  });
});

describe('sendPayload', () => {
  it('posts the payload', () => {
    const spy = vi.spyOn(client, 'post');
    sendPayload(client, { id: 1 });
    expect(spy).toHaveBeenCalledWith('/payload', { id: 1 });
    expect(spy).not.toHaveBeenCalledTimes(2);
  });
});

describe('loadUser', () => {
  it('rejects unknown ids', async () => {
    await expect(loadUser('nope')).rejects.toThrow('not found');
  });

  it.todo('handles an empty id');
});
"""

PY_TESTS = """\
import pytest
from unittest import mock


@pytest.fixture
def client():
    return mock.Mock()


class TestParseConfig:
    def test_reads_values(self):
        assert parse_config("a=1") == {"a": 1}

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_config("???")


def test_save_calls_store(mocker):
    store = mocker.patch("app.store.write")
    save({"id": 1})
    store.assert_called_once_with({"id": 1})
"""

GO_TESTS = """\
package calc

import "testing"

func TestAdd(t *testing.T) {
\tif got := Add(1, 2); got != 3 {
\t\tt.Errorf("Add(1, 2) = %d, want 3", got)
\t}
}

func TestParseRate_Empty(t *testing.T) {
\tt.Run("empty input", func(t *testing.T) {
\t\t_, err := ParseRate("")
\t\trequire.Error(t, err)
\t\tassert.Equal(t, 0.0, rate)
\t})
}
"""

JAVA_TESTS = """\
class CalculatorTest {
    @BeforeEach
    void setUp() {
        calc = new Calculator();
    }

    @Test
    void addsTwoNumbers() {
        assertEquals(3, calc.add(1, 2));
    }

    @Test
    @DisplayName("rejects null")
    void parseConfigRejectsNull() {
        assertThrows(IllegalArgumentException.class, () -> calc.parseConfig(null));
    }

    @Test
    void savesThroughRepository() {
        Repository repo = mock(Repository.class);
        new Service(repo).save(item);
        verify(repo).save(item);
    }
}
"""

RUBY_TESTS = """\
require "spec_helper"

RSpec.describe Cart do
  let(:cart) { Cart.new }

  describe "#add_item" do
    it "adds the item" do
      cart.add_item(:apple)
      expect(cart.items).to eq([:apple])
    end

    it "raises on nil item" do
      expect { cart.add_item(nil) }.to raise_error(ArgumentError)
    end
  end
end
"""


def _tests(summary):
    return {t.name: t for t in summary.tests}


class TestTypeScriptTests:
    """describe/it blocks with expect chains."""

    def setup_method(self):
        self.summary = TestExtractor(SYNTAXES["typescript"]).extract(TS_TESTS, "src/users.test.ts")
        self.tests = _tests(self.summary)

    def test_structure(self):
        assert list(self.tests) == [
            "stores the user",
            "posts the payload",
            "rejects unknown ids",
            "handles an empty id",
        ]
        assert self.summary.grouping_blocks == 3
        assert self.summary.hooks == 1

    def test_targets_come_from_describe(self):
        assert self.tests["stores the user"].target_function == "saveUser"
        assert self.tests["posts the payload"].target_function == "sendPayload"
        assert self.tests["handles an empty id"].target_function == "loadUser"

    def test_weak_assertion(self):
        [assertion] = self.tests["stores the user"].assertions
        assert assertion.matcher == "toBeDefined"
        assert assertion.type == "definedness"
        assert assertion.is_weak
        assert assertion.line == 12

    def test_interaction_assertions(self):
        kinds = [a.type for a in self.tests["posts the payload"].assertions]
        assert kinds == ["called_with", "called"]

    def test_rejects_modifier_is_a_throw(self):
        [assertion] = self.tests["rejects unknown ids"].assertions
        assert assertion.matcher == "toThrow"
        assert assertion.type == "throws"

    def test_pending_test_has_no_assertions(self):
        assert not self.tests["handles an empty id"].has_assertions

    def test_doubles(self):
        stores = self.tests["stores the user"]
        assert stores.has_mocks and not stores.has_spies
        [mock] = stores.mocks
        assert (mock.kind, mock.target, mock.verified) == ("mock", "repo", False)

        posts = self.tests["posts the payload"]
        assert posts.has_spies
        [spy] = posts.mocks
        assert (spy.kind, spy.target, spy.verified) == ("spy", "client.post", True)

    def test_mock_with_weak_assertion_is_not_side_effect_coverage(self):
        fn = FunctionInfo(
            name="saveUser", file_path="src/users.ts", start_line=1, end_line=3, params=("repo", "user")
        )
        matrix = ScenarioAnalyzer().analyze(fn, [self.tests["stores the user"]])
        assert matrix.side_effects is False
        assert matrix.happy is False


class TestPythonTests:
    def setup_method(self):
        self.summary = TestExtractor(SYNTAXES["python"]).extract(PY_TESTS, "tests/test_config.py")
        self.tests = _tests(self.summary)

    def test_structure(self):
        assert list(self.tests) == ["test_reads_values", "test_rejects_garbage", "test_save_calls_store"]
        assert self.summary.grouping_blocks == 1
        assert self.summary.hooks == 1

    def test_class_names_the_target(self):
        assert self.tests["test_reads_values"].target_function == "parse_config"
        assert self.tests["test_rejects_garbage"].target_function == "parse_config"
        assert self.tests["test_save_calls_store"].target_function is None

    def test_bare_assert_reduces_to_operator(self):
        [assertion] = self.tests["test_reads_values"].assertions
        assert (assertion.matcher, assertion.type, assertion.is_weak) == ("==", "equality", False)

    def test_pytest_raises(self):
        [assertion] = self.tests["test_rejects_garbage"].assertions
        assert assertion.type == "throws"

    def test_patched_and_verified(self):
        test = self.tests["test_save_calls_store"]
        assert [a.type for a in test.assertions] == ["called_with"]
        [mock] = test.mocks
        assert mock.target == "app.store.write"
        assert mock.verified

    def test_fixture_double_is_shared(self):
        [shared] = self.summary.shared_mocks
        assert shared.kind == "mock"
        assert shared.test_name == ""
        # Shared doubles count for every test in the file
        assert self.tests["test_reads_values"].has_mocks


class TestGoTests:
    def setup_method(self):
        self.summary = TestExtractor(SYNTAXES["go"]).extract(GO_TESTS, "calc/rate_test.go")
        self.tests = _tests(self.summary)

    def test_targets_from_test_names(self):
        assert self.tests["TestAdd"].target_function == "Add"
        assert self.tests["TestParseRate_Empty"].target_function == "ParseRate"

    def test_assertions(self):
        assert [a.matcher for a in self.tests["TestAdd"].assertions] == ["Errorf"]
        kinds = [a.type for a in self.tests["TestParseRate_Empty"].assertions]
        assert kinds == ["throws", "equality"]

    def test_subtests_are_groups(self):
        assert self.summary.grouping_blocks == 1


class TestJavaTests:
    def setup_method(self):
        self.summary = TestExtractor(SYNTAXES["java"]).extract(JAVA_TESTS, "src/test/java/CalculatorTest.java")
        self.tests = _tests(self.summary)

    def test_annotated_methods(self):
        assert list(self.tests) == ["addsTwoNumbers", "parseConfigRejectsNull", "savesThroughRepository"]
        assert self.summary.hooks == 1

    def test_assertion_kinds(self):
        assert [a.type for a in self.tests["addsTwoNumbers"].assertions] == ["equality"]
        assert [a.type for a in self.tests["parseConfigRejectsNull"].assertions] == ["throws"]
        assert [a.type for a in self.tests["savesThroughRepository"].assertions] == ["called_with"]

    def test_mockito(self):
        test = self.tests["savesThroughRepository"]
        assert test.has_mocks
        assert [m.target for m in test.mocks] == ["Repository"]
        assert test.mocks[0].verified


class TestRubyTests:
    def setup_method(self):
        self.summary = TestExtractor(SYNTAXES["ruby"]).extract(RUBY_TESTS, "spec/cart_spec.rb")
        self.tests = _tests(self.summary)

    def test_structure(self):
        assert list(self.tests) == ["adds the item", "raises on nil item"]
        assert self.summary.grouping_blocks == 2
        assert self.summary.hooks == 1

    def test_method_describe_names_the_target(self):
        assert self.tests["adds the item"].target_function == "add_item"

    def test_rspec_matchers(self):
        [eq] = self.tests["adds the item"].assertions
        assert (eq.matcher, eq.type) == ("eq", "equality")
        [raise_error] = self.tests["raises on nil item"].assertions
        assert (raise_error.matcher, raise_error.type) == ("raise_error", "throws")


class TestEmptyFiles:
    def test_no_tests(self):
        summary = TestExtractor(SYNTAXES["typescript"]).extract("// nothing here\n", "src/empty.test.ts")
        assert summary.tests == ()
        assert summary.grouping_blocks == 0
        assert summary.hooks == 0
        assert summary.shared_mocks == ()


TS_MEMBER_CALLS = """\
describe('isLower', () => {
  beforeEach(() => {
    router.before('/x', handler);
  });

  it('accepts lowercase', () => { expect(/^[a-z]+$/.test('abc')).toBe(true) });

  it('validates a schema', () => {
    const ok = schema.test("x") && registry.describe('y');
    expect(ok).toBe(true);
  });
});
"""


class TestMemberCalls:
    """Methods named like test functions are not test blocks."""

    def setup_method(self):
        self.summary = TestExtractor(SYNTAXES["typescript"]).extract(TS_MEMBER_CALLS, "src/lower.test.ts")

    def test_only_real_tests(self):
        assert [t.name for t in self.summary.tests] == ["accepts lowercase", "validates a schema"]

    def test_only_real_groups_and_hooks(self):
        assert self.summary.grouping_blocks == 1
        assert self.summary.hooks == 1

    def test_assertions_stay_with_their_test(self):
        tests = _tests(self.summary)
        assert [a.matcher for a in tests["accepts lowercase"].assertions] == ["toBe"]
        assert [a.matcher for a in tests["validates a schema"].assertions] == ["toBe"]
