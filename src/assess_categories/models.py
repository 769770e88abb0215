"""Data models for assess_categories pipeline stage."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from keyword_rules.models import Tier


class StatusLevel(str, Enum):
    """Qualitative category status, least severe first."""

    STABLE = "Stable"
    WARNING = "Warning"
    DRIFT = "Drift"
    CAPTURE = "Capture"


@dataclass(frozen=True)
class AssessmentDetail:
    """Counts behind an assessment."""
    capture_count: int = 0
    drift_count: int = 0
    warning_count: int = 0
    items_reviewed: int = 0
    has_authoritative: bool = False
    insufficient_data: bool = False


@dataclass(frozen=True)
class AssessmentResult:
    """Keyword-based status for one category."""
    status: StatusLevel
    reason: str
    matches: list[str] = field(default_factory=list)
    detail: AssessmentDetail = field(default_factory=AssessmentDetail)


@dataclass(frozen=True)
class ConfidenceFactors:
    """Per-factor confidence inputs, each in [0, 1]."""
    source_diversity: float
    authority_weight: float
    evidence_coverage: float
    keyword_density: float
    ai_agreement: float


@dataclass(frozen=True)
class ConfidenceResult:
    confidence: float
    factors: ConfidenceFactors


@dataclass(frozen=True)
class DowngradeDecision:
    """Outcome of reconciling a keyword status with a secondary assessment."""
    final_status: StatusLevel
    downgrade_applied: bool
    flag_for_review: bool
    reason: str


@dataclass(frozen=True)
class KeywordMatchContext:
    """Provenance for one matched keyword: its tier and the item it came from."""
    keyword: str
    tier: Tier
    matched_in: str
