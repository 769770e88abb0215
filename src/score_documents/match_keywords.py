"""Keyword matching with negation, suppression and downweight rules."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Sequence

from keyword_rules.models import KeywordRuleSet
from score_documents.models import KeywordMatch, SuppressedMatch, Tier
from score_documents.scoring_config import (
    CONTEXT_RADIUS,
    NEGATION_WINDOW_AFTER,
    NEGATION_WINDOW_BEFORE,
    TIER_WEIGHTS,
)

logger = logging.getLogger(__name__)


@lru_cache(maxsize=2048)
def _keyword_pattern(keyword: str) -> re.Pattern:
    return re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE)


def find_keyword(text: str | None, keyword: str) -> re.Match | None:
    """First whole-word, case-insensitive occurrence of keyword in text."""
    if not text or not keyword:
        return None
    return _keyword_pattern(keyword).search(text)


def match_keyword(text: str | None, keyword: str) -> bool:
    """Whether keyword appears in text as a whole phrase.

    "mass" does not match "Massachusetts".
    """
    return find_keyword(text, keyword) is not None


def check_negation(text: str, keyword: str, negation_patterns: Sequence[str]) -> str | None:
    """Return the negation phrase found near the first occurrence of keyword, if any."""
    found = find_keyword(text, keyword)
    if found is None:
        return None
    start = max(0, found.start() - NEGATION_WINDOW_BEFORE)
    window = text[start:found.end() + NEGATION_WINDOW_AFTER].lower()
    for pattern in negation_patterns:
        if pattern.lower() in window:
            return pattern
    return None


@dataclass(frozen=True)
class SuppressionCheck:
    """Outcome of applying a category's suppression rules to one keyword."""
    suppressed: bool = False
    downweighted: bool = False
    rule: str = ""
    reason: str = ""


def check_suppression(text: str, keyword: str, rules: KeywordRuleSet | None) -> SuppressionCheck:
    """Apply suppress_if_any, then downweight_if_any, for rules naming keyword."""
    if rules is None:
        return SuppressionCheck()
    lowered = (text or "").lower()

    for rule in rules.rules_for_keyword(keyword):
        for term in rule.suppress_if_any:
            if term.lower() in lowered:
                return SuppressionCheck(
                    suppressed=True,
                    rule=f"suppress_if_any: {rule.keyword}",
                    reason=f'Co-occurring term "{term}" indicates non-concerning context',
                )
        for term in rule.downweight_if_any:
            if term.lower() in lowered:
                return SuppressionCheck(
                    downweighted=True,
                    rule=f"downweight_if_any: {rule.keyword}",
                    reason=f'Co-occurring term "{term}" suggests reduced severity',
                )

    return SuppressionCheck()


def extract_context(text: str, keyword: str, radius: int = CONTEXT_RADIUS) -> str:
    """Snippet of radius characters either side of keyword, '...' where cut."""
    found = find_keyword(text, keyword)
    if found is None:
        return text[: radius * 2]

    start = max(0, found.start() - radius)
    end = min(len(text), found.end() + radius)
    context = text[start:end]
    if start > 0:
        context = "..." + context
    if end < len(text):
        context = context + "..."
    return context


def match_text(
    text: str,
    rules: KeywordRuleSet | None,
    negation_patterns: Sequence[str] = (),
) -> tuple[list[KeywordMatch], list[SuppressedMatch]]:
    """Match every tiered keyword of a rule set against text.

    Each hit is checked for negation, then category suppression, then
    downweighting (a single tier step). Returns (active, suppressed).
    """
    matches: list[KeywordMatch] = []
    suppressed: list[SuppressedMatch] = []
    if rules is None or not text:
        return matches, suppressed

    for tier, keyword in rules.tiered_keywords():
        if not match_keyword(text, keyword):
            continue

        negation = check_negation(text, keyword, negation_patterns)
        if negation:
            logger.debug("Negated match %r (%s)", keyword, negation)
            suppressed.append(
                SuppressedMatch(
                    keyword=keyword,
                    tier=tier,
                    rule=f"negation: {negation}",
                    reason=f'Negation pattern "{negation}" found near keyword',
                )
            )
            continue

        check = check_suppression(text, keyword, rules)
        if check.suppressed:
            logger.debug("Suppressed match %r (%s)", keyword, check.rule)
            suppressed.append(SuppressedMatch(keyword=keyword, tier=tier, rule=check.rule, reason=check.reason))
            continue

        effective_tier = tier.downweighted() if check.downweighted else tier
        matches.append(
            KeywordMatch(
                keyword=keyword,
                tier=effective_tier,
                weight=TIER_WEIGHTS[effective_tier],
                context=extract_context(text, keyword),
            )
        )

    return matches, suppressed
