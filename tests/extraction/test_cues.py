"""Tests for extraction/cues.py - keyword tables and name classification."""

import pytest

from quality_insight.extraction.cues import (
    DEFAULT_CUES,
    CueTables,
    first_keyword,
    keyword_matches,
    split_words,
)
from quality_insight.models import Category, Criticality


class TestSplitWords:
    """Identifiers and prose split into lowercase words."""

    def test_camel_case(self):
        assert split_words("parseJSONConfig") == ["parse", "json", "config"]

    def test_snake_case(self):
        assert split_words("test_add_empty_list") == ["test", "add", "empty", "list"]

    def test_prose(self):
        assert split_words("throws on Invalid input") == ["throws", "on", "invalid", "input"]

    def test_digits_are_words(self):
        assert split_words("sha256Hash") == ["sha", "256", "hash"]


class TestKeywordMatching:
    """A word matches a keyword plus an optional inflection."""

    @pytest.mark.parametrize(
        "word,keyword",
        [
            ("validation", "validate"),
            ("validates", "validate"),
            ("parsed", "parse"),
            ("parser", "parse"),
            ("saving", "save"),
            ("errors", "error"),
        ],
    )
    def test_inflections_match(self, word, keyword):
        assert keyword_matches(word, keyword)

    @pytest.mark.parametrize(
        "word,keyword",
        [
            ("login", "log"),
            ("catalog", "log"),
            ("maximizes", "max"),
            ("posted", "postal"),
        ],
    )
    def test_unrelated_words_do_not_match(self, word, keyword):
        assert not keyword_matches(word, keyword)

    def test_first_keyword_follows_table_order(self):
        assert first_keyword(["update", "token"], ("token", "update")) == "token"
        assert first_keyword(["render"], ("token", "update")) is None


class TestCriticality:
    """Functions are classified by name only."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("parseConfig", Criticality.CRITICAL),
            ("validate_email", Criticality.CRITICAL),
            ("login", Criticality.CRITICAL),
            ("hashPassword", Criticality.CRITICAL),
            ("saveUser", Criticality.HIGH),
            ("delete_record", Criticality.HIGH),
            ("formatDate", Criticality.MEDIUM),
            ("getTotal", Criticality.MEDIUM),
            ("add", Criticality.LOW),
            ("logEvent", Criticality.LOW),
        ],
    )
    def test_levels(self, name, expected):
        assert DEFAULT_CUES.criticality(name) is expected

    def test_critical_wins_over_high(self):
        """A name hitting several tables takes the most severe level."""
        assert DEFAULT_CUES.criticality("saveToken") is Criticality.CRITICAL

    def test_high_risk_levels(self):
        assert Criticality.CRITICAL.is_high_risk
        assert Criticality.HIGH.is_high_risk
        assert not Criticality.MEDIUM.is_high_risk
        assert not Criticality.LOW.is_high_risk


class TestCategory:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("parseConfig", Category.PARSER),
            ("tokenize", Category.PARSER),
            ("validateEmail", Category.VALIDATOR),
            ("checkLimits", Category.VALIDATOR),
            ("runJob", Category.CORE),
            ("calculate_tax", Category.CORE),
            ("formatDate", Category.UTIL),
            ("toString", Category.UTIL),
            ("add", Category.OTHER),
        ],
    )
    def test_categories(self, name, expected):
        assert DEFAULT_CUES.category(name) is expected


class TestSideEffects:
    def test_side_effect_verbs(self):
        assert DEFAULT_CUES.is_side_effect_verb("saveUser")
        assert DEFAULT_CUES.is_side_effect_verb("logEvent")
        assert DEFAULT_CUES.is_side_effect_verb("send_email")
        assert not DEFAULT_CUES.is_side_effect_verb("login")
        assert not DEFAULT_CUES.is_side_effect_verb("getTotal")

    def test_body_cues(self):
        assert DEFAULT_CUES.side_effects("fs.writeFileSync(path, data)") == ("File I/O",)
        assert DEFAULT_CUES.side_effects("const r = await fetch(url)") == ("HTTP",)
        assert DEFAULT_CUES.side_effects("return Date.now() + Math.random()") == (
            "Time-dependent",
            "Random",
        )
        assert DEFAULT_CUES.side_effects("return a + b") == ()


class TestTestVocabulary:
    """Error and boundary cues in test titles."""

    @pytest.mark.parametrize(
        "title",
        ["throws on invalid input", "rejects_malformed_token", "raises ValueError", "test_fails_cleanly"],
    )
    def test_error_titles(self, title):
        assert DEFAULT_CUES.mentions_error(title)

    @pytest.mark.parametrize(
        "title",
        ["handles empty list", "returns None for missing key", "test_zero_amount", "respects the limit"],
    )
    def test_boundary_titles(self, title):
        assert DEFAULT_CUES.mentions_boundary(title)

    def test_plain_titles(self):
        assert not DEFAULT_CUES.mentions_error("adds two numbers")
        assert not DEFAULT_CUES.mentions_boundary("maximizes profit")


class TestAssertionKinds:
    @pytest.mark.parametrize(
        "matcher,kind",
        [
            ("toBe", "equality"),
            ("assertEqual", "equality"),
            ("==", "equality"),
            ("toThrow", "throws"),
            ("raises", "throws"),
            ("toHaveBeenCalledWith", "called_with"),
            ("assert_called_once_with", "called_with"),
            ("toHaveBeenCalled", "called"),
            ("toBeDefined", "definedness"),
            ("toBeTruthy", "truthiness"),
            ("toMatchSnapshot", "snapshot"),
            ("somethingElse", "other"),
        ],
    )
    def test_kind_lookup(self, matcher, kind):
        assert DEFAULT_CUES.assertion_kind(matcher) == kind

    def test_weak_kinds(self):
        assert DEFAULT_CUES.is_weak("truthiness")
        assert DEFAULT_CUES.is_weak("definedness")
        assert DEFAULT_CUES.is_weak("snapshot")
        assert not DEFAULT_CUES.is_weak("equality")


class TestCustomTables:
    """Overrides build new tables and never touch the defaults."""

    def test_from_mapping(self):
        cues = CueTables.from_mapping(
            {
                "critical": ["charge"],
                "assertion_kinds": {"equality": ["shouldEqual"]},
            }
        )
        assert cues.criticality("chargeCard") is Criticality.CRITICAL
        assert cues.criticality("parseConfig") is Criticality.LOW
        assert cues.assertion_kind("shouldEqual") == "equality"
        assert cues.assertion_kind("toBe") == "other"

        # Defaults unchanged
        assert DEFAULT_CUES.criticality("parseConfig") is Criticality.CRITICAL
        assert DEFAULT_CUES.assertion_kind("toBe") == "equality"

    def test_unknown_category_rejected(self):
        with pytest.raises(ValueError):
            CueTables.from_mapping({"categories": {"wizard": ["spell"]}})

    def test_tables_are_frozen(self):
        with pytest.raises(AttributeError):
            DEFAULT_CUES.critical = ("nothing",)
