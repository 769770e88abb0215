"""Data models for aggregate_weeks pipeline stage."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional


@dataclass
class WeeklyAggregate:
    """Per-category, per-week rollup of document scores."""
    category: str
    week_of: date
    total_severity: float = 0.0
    document_count: int = 0
    avg_severity_per_doc: float = 0.0
    capture_proportion: float = 0.0
    drift_proportion: float = 0.0
    warning_proportion: float = 0.0
    severity_mix: float = 0.0
    capture_match_count: int = 0
    drift_match_count: int = 0
    warning_match_count: int = 0
    suppressed_match_count: int = 0
    top_keywords: list[str] = field(default_factory=list)
    computed_at: Optional[datetime] = None


@dataclass(frozen=True)
class TierProportions:
    capture: float
    drift: float
    warning: float
    severity_mix: float


@dataclass
class CumulativeScores:
    """Running views over a category's ordered weekly severities."""
    category: str
    as_of: Optional[date]
    running_sum: float
    running_average: float
    week_count: int
    high_water_mark: float
    high_water_week: Optional[date]
    current_week_score: float
    decay_weighted_score: float
    decay_half_life_weeks: float
