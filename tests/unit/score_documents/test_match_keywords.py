"""Tests for score_documents.match_keywords module."""

from keyword_rules.models import KeywordRuleSet, SuppressionRule
from score_documents.match_keywords import (
    check_negation,
    check_suppression,
    extract_context,
    match_keyword,
    match_text,
)
from score_documents.models import Tier

NEGATIONS = ("no evidence of", "rejected", "blocked")


class TestMatchKeyword:
    def test_case_insensitive(self) -> None:
        assert match_keyword("SCHEDULE F reinstated", "schedule f")

    def test_word_boundary(self) -> None:
        assert not match_keyword("Massachusetts delegation", "mass")
        assert match_keyword("a mass termination", "mass termination")

    def test_regex_characters_escaped(self) -> None:
        assert match_keyword("schedule policy/career created", "schedule policy/career")
        assert not match_keyword("anything", "a.b")

    def test_missing_text(self) -> None:
        assert not match_keyword(None, "schedule f")
        assert not match_keyword("", "schedule f")


class TestCheckNegation:
    def test_phrase_before_keyword(self) -> None:
        text = "GAO found no evidence of impoundment this quarter"
        assert check_negation(text, "impoundment", NEGATIONS) == "no evidence of"

    def test_phrase_outside_window(self) -> None:
        text = "no evidence of " + "x" * 80 + " impoundment"
        assert check_negation(text, "impoundment", NEGATIONS) is None

    def test_phrase_after_keyword_within_window(self) -> None:
        text = "The impoundment was rejected by the court"
        assert check_negation(text, "impoundment", NEGATIONS) == "rejected"

    def test_phrase_after_keyword_outside_window(self) -> None:
        text = "The impoundment " + "y" * 40 + " was rejected"
        assert check_negation(text, "impoundment", NEGATIONS) is None

    def test_keyword_absent(self) -> None:
        assert check_negation("nothing here", "impoundment", NEGATIONS) is None


class TestCheckSuppression:
    rules = KeywordRuleSet(
        drift=("impoundment",),
        suppression_rules=(
            SuppressionRule(
                keyword="impoundment",
                suppress_if_any=("bipartisan",),
                downweight_if_any=("proposed",),
            ),
        ),
    )

    def test_suppress_term(self) -> None:
        result = check_suppression("Bipartisan deal on impoundment", "impoundment", self.rules)
        assert result.suppressed is True
        assert result.rule == "suppress_if_any: impoundment"
        assert '"bipartisan"' in result.reason

    def test_downweight_term(self) -> None:
        result = check_suppression("Proposed impoundment of funds", "impoundment", self.rules)
        assert result.suppressed is False
        assert result.downweighted is True

    def test_suppress_wins_over_downweight(self) -> None:
        result = check_suppression("Bipartisan proposed impoundment", "impoundment", self.rules)
        assert result.suppressed is True

    def test_no_rule_for_keyword(self) -> None:
        result = check_suppression("Bipartisan rescission", "rescission", self.rules)
        assert result.suppressed is False
        assert result.downweighted is False

    def test_no_rules(self) -> None:
        assert check_suppression("anything", "impoundment", None).suppressed is False


class TestExtractContext:
    def test_short_text_unmarked(self) -> None:
        assert extract_context("Schedule F reinstated", "schedule f") == "Schedule F reinstated"

    def test_long_text_truncated_both_sides(self) -> None:
        text = "a" * 100 + " regulatory freeze " + "b" * 100
        context = extract_context(text, "regulatory freeze")
        assert context.startswith("...")
        assert context.endswith("...")
        assert "regulatory freeze" in context
        assert len(context) == 3 + 50 + len("regulatory freeze") + 50 + 3

    def test_keyword_missing_returns_prefix(self) -> None:
        assert extract_context("x" * 300, "absent") == "x" * 100


class TestMatchText:
    rules = KeywordRuleSet(
        capture=("jurisdiction stripped",),
        drift=("court packing",),
        warning=("injunction",),
        suppression_rules=(
            SuppressionRule(keyword="court packing", suppress_if_any=("roosevelt",)),
            SuppressionRule(
                keyword="jurisdiction stripped",
                suppress_if_any=("draft legislation",),
                downweight_if_any=("hearing on",),
            ),
        ),
    )

    def test_negated_match_only_in_suppressed(self) -> None:
        matches, suppressed = match_text("Court blocked court packing plan", self.rules, NEGATIONS)
        assert matches == []
        assert [(s.keyword, s.rule) for s in suppressed] == [("court packing", "negation: blocked")]

    def test_suppressed_match_removed(self) -> None:
        matches, suppressed = match_text("Roosevelt and court packing", self.rules, NEGATIONS)
        assert matches == []
        assert suppressed[0].keyword == "court packing"
        assert suppressed[0].tier is Tier.DRIFT

    def test_downweight_moves_exactly_one_tier(self) -> None:
        matches, _ = match_text("Senate hearing on jurisdiction stripped from courts", self.rules, NEGATIONS)
        assert len(matches) == 1
        assert matches[0].tier is Tier.DRIFT
        assert matches[0].weight == 2

    def test_active_match_has_weight_and_context(self) -> None:
        matches, suppressed = match_text("Judge issues injunction", self.rules, NEGATIONS)
        assert suppressed == []
        assert matches[0].keyword == "injunction"
        assert matches[0].tier is Tier.WARNING
        assert matches[0].weight == 1
        assert "injunction" in matches[0].context

    def test_empty_text(self) -> None:
        assert match_text("", self.rules, NEGATIONS) == ([], [])

    def test_no_rules(self) -> None:
        assert match_text("court packing", None, NEGATIONS) == ([], [])
