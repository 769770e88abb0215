"""Embedding-based semantic drift of a category-week against a baseline."""

from __future__ import annotations

import logging
from datetime import date
from typing import Sequence

from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError

from common.dates import week_to_range
from common.db import documents, get_session, is_db_available
from common.stats import coerce_embedding, compute_centroid, cosine_distance, round_to
from compute_baselines.compute_baselines import get_baseline
from detect_drift.models import DriftBand, SemanticDriftResult
from keyword_rules.load_rules import get_rule_config
from keyword_rules.models import RuleConfig

logger = logging.getLogger(__name__)

ELEVATED_THRESHOLD = 1.0
ANOMALY_THRESHOLD = 2.0

NO_NOISE_FLOOR_INTERPRETATION = (
    "Noise floor not available - raw drift measured but cannot assess relative significance"
)


def drift_band(normalized_drift: float) -> DriftBand:
    if normalized_drift >= ANOMALY_THRESHOLD:
        return DriftBand.ANOMALOUS
    if normalized_drift >= ELEVATED_THRESHOLD:
        return DriftBand.ELEVATED
    return DriftBand.NORMAL


def interpret_drift(raw_cosine_drift: float, noise_floor: float | None) -> tuple[float | None, str, DriftBand | None]:
    """Normalize raw drift by the noise floor and describe it.

    Returns (normalized_drift, interpretation, band); normalized_drift and
    band are None when the noise floor is missing or zero.
    """
    if not noise_floor or noise_floor <= 0:
        return None, NO_NOISE_FLOOR_INTERPRETATION, None

    normalized = raw_cosine_drift / noise_floor
    band = drift_band(normalized)
    interpretation = (
        f"This week's language shift is {round_to(normalized, 1)}x normal variation "
        f"for this category ({band.value})"
    )
    return normalized, interpretation, band


def build_semantic_drift(
    category: str,
    week_of: date,
    baseline_id: str,
    current_centroid: Sequence[float],
    baseline_centroid: Sequence[float],
    noise_floor: float | None,
) -> SemanticDriftResult:
    raw = cosine_distance(current_centroid, baseline_centroid)
    normalized, interpretation, band = interpret_drift(raw, noise_floor)
    return SemanticDriftResult(
        category=category,
        week_of=week_of,
        baseline_id=baseline_id,
        raw_cosine_drift=raw,
        noise_floor=noise_floor,
        normalized_drift=normalized,
        interpretation=interpretation,
        band=band,
    )


def compute_week_centroid(category: str, week_of: date) -> list[float] | None:
    """Mean embedding of a category's documents published in the week.

    None when storage is unconfigured or unreachable, or without embedded
    documents.
    """
    if not is_db_available():
        return None

    start, end = week_to_range(week_of)
    c = documents.c
    try:
        with get_session() as session:
            rows = session.execute(
                select(c.embedding).where(
                    and_(
                        c.category == category,
                        c.published_at >= start,
                        c.published_at < end,
                        c.embedding.isnot(None),
                    )
                )
            ).scalars().all()
    except SQLAlchemyError as e:
        logger.warning("Failed to load embeddings for %s/%s: %s", category, week_of, e)
        return None

    vectors = [v for v in (coerce_embedding(row) for row in rows) if v]
    if not vectors:
        return None
    dimension = len(vectors[0])
    return compute_centroid([v for v in vectors if len(v) == dimension])


def compute_semantic_drift(
    category: str,
    week_of: date,
    baseline_id: str | None = None,
    rules: RuleConfig | None = None,
) -> SemanticDriftResult | None:
    """Semantic drift of a week against a stored baseline.

    baseline_id defaults to the first configured baseline. Returns None when
    either the week or the baseline has no embedding centroid.
    """
    if baseline_id is None:
        baseline_id = (rules or get_rule_config()).default_baseline_id
        if baseline_id is None:
            logger.warning("No baselines configured")
            return None

    current = compute_week_centroid(category, week_of)
    if current is None:
        logger.info("No embeddings for %s/%s, semantic drift unavailable", category, week_of)
        return None

    baseline = get_baseline(baseline_id, category)
    if baseline is None or baseline.embedding_centroid is None:
        logger.info("No %s baseline centroid for %s, semantic drift unavailable", baseline_id, category)
        return None

    return build_semantic_drift(
        category,
        week_of,
        baseline_id,
        current,
        baseline.embedding_centroid,
        baseline.drift_noise_floor,
    )
