"""Data models for compute_baselines pipeline stage."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass
class CategoryBaseline:
    """Reference statistics for one category over a baseline period."""
    baseline_id: str
    category: str
    avg_weekly_severity: float
    stddev_weekly_severity: float
    avg_weekly_doc_count: float
    avg_severity_mix: float
    drift_noise_floor: Optional[float] = None
    embedding_centroid: Optional[list[float]] = None
    computed_at: Optional[datetime] = None


@dataclass(frozen=True)
class BaselineStats:
    """Numeric part of a baseline, from weekly aggregates only."""
    avg_weekly_severity: float
    stddev_weekly_severity: float
    avg_weekly_doc_count: float
    avg_severity_mix: float


@dataclass(frozen=True)
class EmbeddedDocument:
    """A stored document vector with its publication time."""
    embedding: list[float]
    published_at: Optional[datetime] = None


@dataclass(frozen=True)
class WeekCentroid:
    week_of: date
    centroid: list[float]
    document_count: int
