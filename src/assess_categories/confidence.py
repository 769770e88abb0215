"""Confidence score for a keyword assessment, with an auditable breakdown."""

from __future__ import annotations

from typing import Sequence

from assess_categories.models import AssessmentResult, ConfidenceFactors, ConfidenceResult, StatusLevel
from assess_categories.status_ordering import status_distance
from common.stats import round_to
from ingest_items.models import ContentItem
from keyword_rules.load_rules import get_rule_config
from keyword_rules.models import RuleConfig

FACTOR_WEIGHTS = {
    "source_diversity": 0.15,
    "authority_weight": 0.25,
    "evidence_coverage": 0.2,
    "keyword_density": 0.15,
    "ai_agreement": 0.25,
}

# Counts at which each factor saturates to 1.0
MAX_SOURCE_KINDS = 6
MAX_AUTHORITATIVE_ITEMS = 3
MAX_EVIDENCE_ITEMS = 10
MIN_DENSITY_DENOMINATOR = 3
DENSITY_ITEM_FRACTION = 0.3

# Agreement by status distance 0, 1, 2, 3+
AGREEMENT_BY_DISTANCE = (1.0, 0.7, 0.4, 0.2)
DEFAULT_AGREEMENT = 0.5


def _capped(value: float) -> float:
    return max(0.0, min(1.0, value))


def agreement_score(keyword_status: StatusLevel | str, secondary_status: StatusLevel | str | None) -> float:
    if secondary_status is None:
        return DEFAULT_AGREEMENT
    distance = status_distance(keyword_status, secondary_status)
    return AGREEMENT_BY_DISTANCE[min(distance, len(AGREEMENT_BY_DISTANCE) - 1)]


def calculate_confidence(
    items: Sequence[ContentItem],
    result: AssessmentResult,
    secondary_status: StatusLevel | str | None = None,
    rules: RuleConfig | None = None,
) -> ConfidenceResult:
    """Blend coverage signals into one confidence value in [0, 1].

    Args:
        items: Items the assessment was made from, including error placeholders
        result: The keyword assessment
        secondary_status: Status from an independent assessment, if any
        rules: Rule configuration used for the authority check

    Returns:
        ConfidenceResult with the weighted score rounded to 2 dp and each factor
    """
    config = rules or get_rule_config()
    valid_items = [item for item in items if item.is_valid]

    agencies = {item.agency for item in valid_items if item.agency}
    source_types = {item.type or "unknown" for item in items}
    authoritative = sum(1 for item in valid_items if config.is_high_authority(item.agency))

    if valid_items:
        density_denominator = max(MIN_DENSITY_DENOMINATOR, len(valid_items) * DENSITY_ITEM_FRACTION)
        keyword_density = _capped(len(result.matches) / density_denominator)
    else:
        keyword_density = 0.0

    factors = ConfidenceFactors(
        source_diversity=_capped((len(agencies) + len(source_types)) / MAX_SOURCE_KINDS),
        authority_weight=_capped(authoritative / MAX_AUTHORITATIVE_ITEMS),
        evidence_coverage=_capped(len(valid_items) / MAX_EVIDENCE_ITEMS),
        keyword_density=keyword_density,
        ai_agreement=agreement_score(result.status, secondary_status),
    )

    confidence = sum(getattr(factors, name) * weight for name, weight in FACTOR_WEIGHTS.items())
    return ConfidenceResult(confidence=round_to(confidence, 2), factors=factors)
