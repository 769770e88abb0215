"""Tests for assess_categories.match_context module."""

from assess_categories.match_context import (
    UNIDENTIFIED_SOURCE,
    build_keyword_match_contexts,
    classify_match_tier,
    find_match_source,
    strip_annotation,
)
from ingest_items.models import ContentItem
from keyword_rules.models import KeywordRuleSet, Tier

RULES = KeywordRuleSet(capture=("illegal impoundment",), drift=("rescission",), warning=("deferral",))


class TestStripAnnotation:
    def test_removes_trailing_parenthetical(self) -> None:
        assert strip_annotation("Rescission (systematic pattern)") == "rescission"

    def test_plain_keyword(self) -> None:
        assert strip_annotation("deferral") == "deferral"


class TestClassifyMatchTier:
    def test_known_keywords(self) -> None:
        assert classify_match_tier("illegal impoundment", RULES) is Tier.CAPTURE
        assert classify_match_tier("rescission", RULES) is Tier.DRIFT
        assert classify_match_tier("deferral", RULES) is Tier.WARNING

    def test_annotated_known_keyword_keeps_its_tier(self) -> None:
        assert classify_match_tier("rescission (systematic pattern)", RULES) is Tier.DRIFT

    def test_annotated_unknown_is_capture(self) -> None:
        assert classify_match_tier("purge (systematic pattern)", RULES) is Tier.CAPTURE

    def test_unknown_is_warning(self) -> None:
        assert classify_match_tier("oversight.gov shutdown", RULES) is Tier.WARNING
        assert classify_match_tier("rescission", None) is Tier.WARNING


class TestFindMatchSource:
    items = [
        ContentItem(title="Budget notice"),
        ContentItem(title="Rescission package", summary="Sent to Congress"),
    ]

    def test_first_item_containing_keyword(self) -> None:
        assert find_match_source("rescission (systematic pattern)", self.items) == "Rescission package"

    def test_not_found(self) -> None:
        assert find_match_source("deferral", self.items) == UNIDENTIFIED_SOURCE


class TestBuildKeywordMatchContexts:
    def test_one_context_per_match(self) -> None:
        items = [ContentItem(title="Illegal impoundment of funds")]
        contexts = build_keyword_match_contexts(["illegal impoundment", "deferral"], RULES, items)
        assert [(c.keyword, c.tier, c.matched_in) for c in contexts] == [
            ("illegal impoundment", Tier.CAPTURE, "Illegal impoundment of funds"),
            ("deferral", Tier.WARNING, UNIDENTIFIED_SOURCE),
        ]
