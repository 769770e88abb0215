"""Data models for detect_drift pipeline stage."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional


class DriftBand(str, Enum):
    NORMAL = "within normal range"
    ELEVATED = "elevated"
    ANOMALOUS = "anomalous"


@dataclass(frozen=True)
class SemanticDriftResult:
    """Distance of a week's language from a baseline, relative to normal noise."""
    category: str
    week_of: date
    baseline_id: str
    raw_cosine_drift: float
    noise_floor: Optional[float]
    normalized_drift: Optional[float]
    interpretation: str
    band: Optional[DriftBand] = None


class AnomalySeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class KeywordTrend:
    """A keyword's count over a period next to its historical average."""
    keyword: str
    category: str
    current_count: int
    baseline_avg: float
    ratio: float
    is_anomaly: bool
    period_start: datetime
    period_end: datetime


@dataclass(frozen=True)
class TrendAnomaly:
    keyword: str
    category: str
    ratio: float
    severity: AnomalySeverity
    message: str
    detected_at: datetime
