"""Data models for score_documents pipeline stage."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional

from keyword_rules.models import Tier

__all__ = ["Tier", "DocumentClass", "KeywordMatch", "SuppressedMatch", "DocumentScore"]


class DocumentClass(str, Enum):
    """Kind of government document, each with its own severity multiplier."""

    EXECUTIVE_ORDER = "executive_order"
    PRESIDENTIAL_MEMORANDUM = "presidential_memorandum"
    FINAL_RULE = "final_rule"
    PROPOSED_RULE = "proposed_rule"
    NOTICE = "notice"
    COURT_OPINION = "court_opinion"
    REPORT = "report"
    PRESS_RELEASE = "press_release"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class KeywordMatch:
    """An active keyword hit after negation, suppression and downweighting."""
    keyword: str
    tier: Tier
    weight: float
    context: str


@dataclass(frozen=True)
class SuppressedMatch:
    """A keyword hit removed from scoring, with the rule that removed it."""
    keyword: str
    tier: Tier
    rule: str
    reason: str


@dataclass
class DocumentScore:
    """Per-document severity score for one category."""
    url: str
    category: str
    severity_score: float
    final_score: float
    capture_count: int
    drift_count: int
    warning_count: int
    suppressed_count: int
    document_class: DocumentClass
    class_multiplier: float
    is_high_authority: bool
    scored_at: datetime
    week_of: date
    title: str
    published_at: Optional[datetime] = None
    matches: list[KeywordMatch] = field(default_factory=list)
    suppressed: list[SuppressedMatch] = field(default_factory=list)

    def count_for(self, tier: Tier) -> int:
        return getattr(self, f"{tier.value}_count")
