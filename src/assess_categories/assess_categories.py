"""Keyword-based status assessment for a batch of items in one category."""

from __future__ import annotations

import logging
from typing import Iterable

from assess_categories.models import AssessmentDetail, AssessmentResult, StatusLevel
from ingest_items.models import ContentItem
from keyword_rules.load_rules import get_rule_config
from keyword_rules.models import Category, KeywordRuleSet, RuleConfig
from score_documents.match_keywords import match_keyword

logger = logging.getLogger(__name__)

PATTERN_LANGUAGE = ("unprecedented", "systematic", "pattern of", "multiple", "repeated")
SYSTEMATIC_SUFFIX = " (systematic pattern)"

# Below this many valid items a category is never reported as Stable
MIN_ITEMS_FOR_STABLE = 3

# Markers that the central IG oversight portal is offline
OVERSIGHT_DOWN_TITLE_MARKERS = ("CURRENTLY DOWN", "offline")
OVERSIGHT_DOWN_NOTE_MARKER = "lack of apportionment"


def _oversight_portal_down(items: Iterable[ContentItem]) -> bool:
    for item in items:
        title = item.title or ""
        if any(marker in title for marker in OVERSIGHT_DOWN_TITLE_MARKERS):
            return True
        if OVERSIGHT_DOWN_NOTE_MARKER in (item.note or ""):
            return True
    return False


def _dedupe(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


def _collect_matches(
    items: list[ContentItem],
    rules: KeywordRuleSet,
    config: RuleConfig,
) -> tuple[list[str], list[str], list[str], bool]:
    """Return deduplicated (capture, drift, warning) matches and whether any
    capture match came from a high-authority agency."""
    capture: list[str] = []
    drift: list[str] = []
    warning: list[str] = []
    authoritative = False

    for item in items:
        text = item.match_text
        if not text:
            continue
        lowered = text.lower()
        has_pattern_language = any(p in lowered for p in PATTERN_LANGUAGE)
        is_high_authority = config.is_high_authority(item.agency)

        for keyword in rules.capture:
            if match_keyword(text, keyword):
                capture.append(keyword)
                authoritative = authoritative or is_high_authority
        for keyword in rules.drift:
            if match_keyword(text, keyword):
                drift.append(keyword)
                if has_pattern_language:
                    capture.append(f"{keyword}{SYSTEMATIC_SUFFIX}")
        for keyword in rules.warning:
            if match_keyword(text, keyword):
                warning.append(keyword)

    return _dedupe(capture), _dedupe(drift), _dedupe(warning), authoritative


def analyze_content(
    items: Iterable[ContentItem],
    category: Category | str,
    rules: RuleConfig | None = None,
) -> AssessmentResult:
    """Assess a category's status from its current items.

    Rules are applied in priority order and the first that fires wins:
    two or more capture signals give Capture, a single capture signal gives
    Drift pending corroboration, then drift and warning keyword counts, then
    volume thresholds. Without any signal the category is Stable only when
    at least three valid items were reviewed.
    """
    config = rules or get_rule_config()
    items = list(items)
    rule_set = config.rules_for(category)
    if rule_set is None:
        logger.warning("No assessment rules configured for %s", category)
        return AssessmentResult(status=StatusLevel.WARNING, reason="No assessment rules configured")

    valid_items = [item for item in items if item.is_valid]
    item_count = len(valid_items)
    insufficient = item_count < MIN_ITEMS_FOR_STABLE

    if Category.parse(category) is Category.IGS and _oversight_portal_down(items):
        return AssessmentResult(
            status=StatusLevel.DRIFT,
            reason="Oversight.gov (central IG portal) is offline due to funding issues",
            matches=["oversight.gov shutdown"],
            detail=AssessmentDetail(items_reviewed=item_count, insufficient_data=insufficient),
        )

    capture, drift, warning, authoritative = _collect_matches(valid_items, rule_set, config)

    def detail() -> AssessmentDetail:
        return AssessmentDetail(
            capture_count=len(capture),
            drift_count=len(drift),
            warning_count=len(warning),
            items_reviewed=item_count,
            has_authoritative=authoritative,
            insufficient_data=insufficient,
        )

    if len(capture) >= 2:
        listed = ", ".join(capture[:3])
        if authoritative:
            reason = f"Serious violations found by official sources (GAO, courts, or IGs): {listed}"
        else:
            reason = f"Critical warning signs detected: {listed}"
        return AssessmentResult(status=StatusLevel.CAPTURE, reason=reason, matches=capture, detail=detail())

    if len(capture) == 1:
        return AssessmentResult(
            status=StatusLevel.DRIFT,
            reason=f"Single critical signal detected, needs corroboration: {capture[0]}",
            matches=capture + drift,
            detail=detail(),
        )

    if len(drift) >= 2:
        return AssessmentResult(
            status=StatusLevel.DRIFT,
            reason=f"Multiple concerning patterns found: {', '.join(drift[:3])}",
            matches=drift,
            detail=detail(),
        )

    if len(drift) == 1:
        return AssessmentResult(
            status=StatusLevel.WARNING,
            reason=f"One concerning pattern detected: {drift[0]}",
            matches=drift,
            detail=detail(),
        )

    if warning:
        return AssessmentResult(
            status=StatusLevel.WARNING,
            reason=f"Minor issues found: {', '.join(warning[:3])}",
            matches=warning,
            detail=detail(),
        )

    threshold = rule_set.volume_threshold
    if threshold is not None:
        if item_count >= threshold.capture:
            return AssessmentResult(
                status=StatusLevel.DRIFT,
                reason=f"Very high activity level ({item_count} documents) - may show increased government control",
                detail=detail(),
            )
        if item_count >= threshold.drift:
            return AssessmentResult(
                status=StatusLevel.WARNING,
                reason=f"Higher than normal activity ({item_count} documents)",
                detail=detail(),
            )

    if not insufficient:
        return AssessmentResult(
            status=StatusLevel.STABLE,
            reason="Everything looks normal - no warning signs detected",
            detail=detail(),
        )

    return AssessmentResult(
        status=StatusLevel.WARNING,
        reason=f"Not enough information to make an assessment ({item_count} items reviewed)",
        detail=detail(),
    )
