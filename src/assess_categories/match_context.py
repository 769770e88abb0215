"""Provenance for assessment matches: which tier and which item produced each."""

from __future__ import annotations

import re
from typing import Sequence

from assess_categories.models import KeywordMatchContext
from ingest_items.models import ContentItem
from keyword_rules.models import KeywordRuleSet, Tier

_ANNOTATION = re.compile(r"\s*\(.*\)\s*$")

UNIDENTIFIED_SOURCE = "(source not identified)"


def strip_annotation(match: str) -> str:
    """'impoundment (systematic pattern)' -> 'impoundment'."""
    return _ANNOTATION.sub("", match).strip().lower()


def classify_match_tier(match: str, rules: KeywordRuleSet | None) -> Tier:
    """Tier of a (possibly annotated) match; annotated unknowns count as capture."""
    if rules is None:
        return Tier.WARNING

    keyword = strip_annotation(match)
    for tier in Tier:
        if any(keyword == k.lower() for k in rules.keywords_for(tier)):
            return tier

    if "(systematic pattern)" in match or "(authoritative source)" in match:
        return Tier.CAPTURE
    return Tier.WARNING


def find_match_source(match: str, items: Sequence[ContentItem]) -> str:
    """Title of the first item whose text contains the match."""
    keyword = strip_annotation(match)
    for item in items:
        if keyword in item.match_text.lower():
            return item.title or "(untitled)"
    return UNIDENTIFIED_SOURCE


def build_keyword_match_contexts(
    matches: Sequence[str],
    rules: KeywordRuleSet | None,
    items: Sequence[ContentItem],
) -> list[KeywordMatchContext]:
    return [
        KeywordMatchContext(
            keyword=match,
            tier=classify_match_tier(match, rules),
            matched_in=find_match_source(match, items),
        )
        for match in matches
    ]
