"""Historical baseline statistics per category.

A baseline pairs numeric statistics over weekly aggregates with two
embedding summaries that are computed separately on purpose:

- the embedding centroid, the mean of every document vector in the period
- the noise floor, derived from the distances between consecutive per-week
  centroids
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Sequence

from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError

from aggregate_weeks.aggregate_weeks import load_weekly_aggregates
from aggregate_weeks.models import WeeklyAggregate
from common.dates import get_week_of, to_utc, week_to_range
from common.db import baselines, documents, get_session, is_db_available, upsert_row
from common.stats import coerce_embedding, compute_centroid, cosine_distance, mean, stddev
from compute_baselines.models import BaselineStats, CategoryBaseline, EmbeddedDocument, WeekCentroid
from keyword_rules.load_rules import get_rule_config
from keyword_rules.models import BaselineConfig, RuleConfig

logger = logging.getLogger(__name__)


def compute_baseline_stats(aggregates: Sequence[WeeklyAggregate]) -> BaselineStats:
    """Mean and sample standard deviation of weekly severity, plus means of
    document count and severity mix."""
    severities = [a.total_severity for a in aggregates]
    return BaselineStats(
        avg_weekly_severity=mean(severities),
        stddev_weekly_severity=stddev(severities),
        avg_weekly_doc_count=mean([a.document_count for a in aggregates]),
        avg_severity_mix=mean([a.severity_mix for a in aggregates]),
    )


def compute_embedding_centroid(docs: Sequence[EmbeddedDocument]) -> list[float] | None:
    """Element-wise mean of every document vector (not of weekly centroids)."""
    return compute_centroid([d.embedding for d in docs])


def compute_week_centroids(docs: Sequence[EmbeddedDocument]) -> list[WeekCentroid]:
    """Per-week centroids in week order, for weeks with at least one dated vector."""
    by_week: dict[date, list[list[float]]] = {}
    for doc in docs:
        if doc.published_at is None:
            continue
        by_week.setdefault(get_week_of(doc.published_at), []).append(doc.embedding)

    return [
        WeekCentroid(week_of=week, centroid=compute_centroid(vectors), document_count=len(vectors))
        for week, vectors in sorted(by_week.items())
    ]


def compute_noise_floor(week_centroids: Sequence[WeekCentroid]) -> float | None:
    """mean + sample stddev of cosine distances between consecutive week centroids.

    None with fewer than two weeks.
    """
    if len(week_centroids) < 2:
        return None
    ordered = sorted(week_centroids, key=lambda w: w.week_of)
    distances = [
        cosine_distance(previous.centroid, current.centroid)
        for previous, current in zip(ordered, ordered[1:])
    ]
    return mean(distances) + stddev(distances)


def _week_range(start: date, end: date) -> tuple[datetime, datetime]:
    """UTC bounds covering exactly the weeks whose Monday falls in [start, end].

    These are the same weeks load_weekly_aggregates returns for the period.
    """
    first_week = start + timedelta(days=-start.weekday() % 7)
    last_week = end - timedelta(days=end.weekday())
    range_start, _ = week_to_range(first_week)
    _, range_end = week_to_range(last_week)
    return range_start, range_end


def _load_embedded_documents(category: str, start: date, end: date) -> list[EmbeddedDocument]:
    """Embedded documents published in the weeks starting within [start, end].

    Vectors whose dimension differs from the first one are skipped.
    """
    range_start, range_end = _week_range(start, end)
    c = documents.c
    with get_session() as session:
        rows = session.execute(
            select(c.embedding, c.published_at).where(
                and_(
                    c.category == category,
                    c.published_at >= range_start,
                    c.published_at < range_end,
                    c.embedding.isnot(None),
                )
            )
        ).all()

    docs: list[EmbeddedDocument] = []
    dimension = None
    for row in rows:
        embedding = coerce_embedding(row.embedding)
        if not embedding:
            continue
        if dimension is None:
            dimension = len(embedding)
        elif len(embedding) != dimension:
            logger.warning("Skipping %d-dim embedding in %s (expected %d)", len(embedding), category, dimension)
            continue
        published_at = to_utc(row.published_at) if row.published_at else None
        docs.append(EmbeddedDocument(embedding=embedding, published_at=published_at))
    return docs


def compute_baseline(config: BaselineConfig) -> list[CategoryBaseline]:
    """Baselines for every category with weekly aggregates in the period.

    Embedding failures leave the centroid and noise floor empty without
    dropping the numeric statistics. Returns [] without a database.
    """
    if not is_db_available():
        logger.warning("DATABASE_URL not set, no baseline computed for %s", config.id)
        return []

    grouped: dict[str, list[WeeklyAggregate]] = {}
    for aggregate in load_weekly_aggregates(start=config.start, end=config.end):
        grouped.setdefault(aggregate.category, []).append(aggregate)

    results = []
    computed_at = datetime.now(timezone.utc)
    for category, weeks in grouped.items():
        stats = compute_baseline_stats(weeks)

        centroid = None
        noise_floor = None
        try:
            docs = _load_embedded_documents(category, config.start, config.end)
        except SQLAlchemyError as e:
            logger.warning("Failed to load embeddings for %s/%s: %s", config.id, category, e)
            docs = []
        if docs:
            centroid = compute_embedding_centroid(docs)
            noise_floor = compute_noise_floor(compute_week_centroids(docs))

        results.append(
            CategoryBaseline(
                baseline_id=config.id,
                category=category,
                avg_weekly_severity=stats.avg_weekly_severity,
                stddev_weekly_severity=stats.stddev_weekly_severity,
                avg_weekly_doc_count=stats.avg_weekly_doc_count,
                avg_severity_mix=stats.avg_severity_mix,
                drift_noise_floor=noise_floor,
                embedding_centroid=centroid,
                computed_at=computed_at,
            )
        )

    logger.info("Computed %s baseline for %d categories", config.id, len(results))
    return results


def store_baseline(results: Sequence[CategoryBaseline]) -> int:
    """Upsert baselines keyed by (baseline_id, category).

    All rows are written in one transaction; returns 0 if it fails.
    """
    if not is_db_available() or not results:
        return 0

    try:
        with get_session() as session:
            for baseline in results:
                upsert_row(
                    session,
                    baselines,
                    ("baseline_id", "category"),
                    {
                        "baseline_id": baseline.baseline_id,
                        "category": baseline.category,
                        "avg_weekly_severity": baseline.avg_weekly_severity,
                        "stddev_weekly_severity": baseline.stddev_weekly_severity,
                        "avg_weekly_doc_count": baseline.avg_weekly_doc_count,
                        "avg_severity_mix": baseline.avg_severity_mix,
                        "drift_noise_floor": baseline.drift_noise_floor,
                        "embedding_centroid": baseline.embedding_centroid,
                        "computed_at": baseline.computed_at,
                    },
                )
            session.commit()
    except SQLAlchemyError as e:
        logger.error("Failed to store %d baselines: %s", len(results), e)
        return 0

    logger.info("Stored %d baselines", len(results))
    return len(results)


def get_baseline(baseline_id: str, category: str) -> CategoryBaseline | None:
    if not is_db_available():
        return None

    c = baselines.c
    try:
        with get_session() as session:
            row = session.execute(
                select(baselines).where(and_(c.baseline_id == baseline_id, c.category == category)).limit(1)
            ).first()
    except SQLAlchemyError as e:
        logger.warning("Failed to load baseline %s/%s: %s", baseline_id, category, e)
        return None

    if row is None:
        return None
    return CategoryBaseline(
        baseline_id=row.baseline_id,
        category=row.category,
        avg_weekly_severity=row.avg_weekly_severity,
        stddev_weekly_severity=row.stddev_weekly_severity,
        avg_weekly_doc_count=row.avg_weekly_doc_count,
        avg_severity_mix=row.avg_severity_mix,
        drift_noise_floor=row.drift_noise_floor,
        embedding_centroid=coerce_embedding(row.embedding_centroid),
        computed_at=to_utc(row.computed_at) if row.computed_at else None,
    )


def compute_all_baselines(rules: RuleConfig | None = None, store: bool = True) -> dict[str, list[CategoryBaseline]]:
    """Compute (and by default store) every configured baseline period."""
    config = rules or get_rule_config()
    results = {}
    for baseline_config in config.baselines:
        results[baseline_config.id] = compute_baseline(baseline_config)
        if store:
            store_baseline(results[baseline_config.id])
    return results


def severity_z_score(aggregate: WeeklyAggregate, baseline: CategoryBaseline) -> float:
    """How many baseline standard deviations a week's severity sits from the mean.

    0 when the baseline has no spread.
    """
    if baseline.stddev_weekly_severity == 0:
        return 0.0
    return (aggregate.total_severity - baseline.avg_weekly_severity) / baseline.stddev_weekly_severity
