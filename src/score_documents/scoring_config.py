"""Scoring constants and the severity formula."""

import math

from score_documents.models import DocumentClass, Tier

TIER_WEIGHTS: dict[Tier, float] = {
    Tier.CAPTURE: 4,
    Tier.DRIFT: 2,
    Tier.WARNING: 1,
}

CLASS_MULTIPLIERS: dict[DocumentClass, float] = {
    DocumentClass.EXECUTIVE_ORDER: 1.5,
    DocumentClass.PRESIDENTIAL_MEMORANDUM: 1.4,
    DocumentClass.FINAL_RULE: 1.3,
    DocumentClass.PROPOSED_RULE: 1.0,
    DocumentClass.NOTICE: 0.5,
    DocumentClass.COURT_OPINION: 1.3,
    DocumentClass.REPORT: 1.2,
    DocumentClass.PRESS_RELEASE: 0.7,
    DocumentClass.UNKNOWN: 1.0,
}

# Characters inspected around a keyword for negation phrases
NEGATION_WINDOW_BEFORE = 60
NEGATION_WINDOW_AFTER = 30

# Characters of context kept either side of a matched keyword
CONTEXT_RADIUS = 50


def tier_score(tier: Tier, count: int) -> float:
    """Weighted log2 contribution of one tier: weight * log2(1 + count)."""
    if count <= 0:
        return 0.0
    return TIER_WEIGHTS[tier] * math.log2(1 + count)


def compute_severity_score(capture_count: int, drift_count: int, warning_count: int) -> float:
    """Sum of per-tier contributions with logarithmic diminishing returns.

    One capture match scores 4.0, two score 4 * log2(3) ~= 6.34, three 8.0.
    """
    return (
        tier_score(Tier.CAPTURE, capture_count)
        + tier_score(Tier.DRIFT, drift_count)
        + tier_score(Tier.WARNING, warning_count)
    )
