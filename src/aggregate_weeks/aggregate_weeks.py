"""Weekly aggregation of document scores per category."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime, timezone
from typing import Iterable, Sequence

from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aggregate_weeks.models import TierProportions, WeeklyAggregate
from common.db import document_scores, get_session, is_db_available, upsert_row, weekly_aggregates
from score_documents.models import DocumentScore, Tier
from score_documents.scoring_config import TIER_WEIGHTS

logger = logging.getLogger(__name__)

TOP_KEYWORDS_LIMIT = 10


def compute_proportions(capture_count: int, drift_count: int, warning_count: int) -> TierProportions:
    """Tier shares of the raw match counts and their weighted severity mix.

    All zero when there are no matches.
    """
    total = capture_count + drift_count + warning_count
    if total == 0:
        return TierProportions(capture=0.0, drift=0.0, warning=0.0, severity_mix=0.0)

    capture = capture_count / total
    drift = drift_count / total
    warning = warning_count / total
    severity_mix = (
        capture * TIER_WEIGHTS[Tier.CAPTURE]
        + drift * TIER_WEIGHTS[Tier.DRIFT]
        + warning * TIER_WEIGHTS[Tier.WARNING]
    )
    return TierProportions(capture=capture, drift=drift, warning=warning, severity_mix=severity_mix)


def count_top_keywords(match_lists: Iterable[Iterable], limit: int = TOP_KEYWORDS_LIMIT) -> list[str]:
    """Most frequent keyword strings across documents' match lists."""
    counts: Counter[str] = Counter()
    for matches in match_lists:
        for match in matches or []:
            keyword = match.get("keyword") if isinstance(match, dict) else getattr(match, "keyword", None)
            if keyword:
                counts[keyword] += 1
    return [keyword for keyword, _ in counts.most_common(limit)]


def _build(
    category: str,
    week_of: date,
    total_severity: float,
    document_count: int,
    capture_count: int,
    drift_count: int,
    warning_count: int,
    suppressed_count: int,
    top_keywords: list[str],
) -> WeeklyAggregate:
    proportions = compute_proportions(capture_count, drift_count, warning_count)
    return WeeklyAggregate(
        category=category,
        week_of=week_of,
        total_severity=total_severity,
        document_count=document_count,
        avg_severity_per_doc=total_severity / document_count if document_count else 0.0,
        capture_proportion=proportions.capture,
        drift_proportion=proportions.drift,
        warning_proportion=proportions.warning,
        severity_mix=proportions.severity_mix,
        capture_match_count=capture_count,
        drift_match_count=drift_count,
        warning_match_count=warning_count,
        suppressed_match_count=suppressed_count,
        top_keywords=top_keywords,
        computed_at=datetime.now(timezone.utc),
    )


def build_weekly_aggregate(category: str, week_of: date, scores: Sequence[DocumentScore]) -> WeeklyAggregate:
    """Aggregate in-memory scores for one category and week.

    Scores from other categories or weeks are ignored.
    """
    selected = [s for s in scores if s.category == category and s.week_of == week_of]
    return _build(
        category,
        week_of,
        total_severity=sum(s.final_score for s in selected),
        document_count=len(selected),
        capture_count=sum(s.capture_count for s in selected),
        drift_count=sum(s.drift_count for s in selected),
        warning_count=sum(s.warning_count for s in selected),
        suppressed_count=sum(s.suppressed_count for s in selected),
        top_keywords=count_top_keywords(s.matches for s in selected),
    )


def extract_top_keywords(
    session: Session,
    category: str,
    week_of: date,
    limit: int = TOP_KEYWORDS_LIMIT,
) -> list[str]:
    """Most frequent matched keywords stored for a category and week.

    Query failures are logged and yield an empty list.
    """
    try:
        rows = session.execute(
            select(document_scores.c.matches).where(
                and_(
                    document_scores.c.category == category,
                    document_scores.c.week_of == week_of.isoformat(),
                )
            )
        ).scalars().all()
    except SQLAlchemyError as e:
        logger.warning("Failed to extract top keywords for %s/%s: %s", category, week_of, e)
        return []
    return count_top_keywords(rows, limit)


def compute_weekly_aggregate(category: str, week_of: date) -> WeeklyAggregate:
    """Aggregate stored document scores for one category and week.

    Returns an empty aggregate when storage is unconfigured or unreachable.
    """
    if not is_db_available():
        logger.warning("DATABASE_URL not set, returning empty aggregate for %s/%s", category, week_of)
        return _build(category, week_of, 0.0, 0, 0, 0, 0, 0, [])

    c = document_scores.c
    try:
        with get_session() as session:
            rows = session.execute(
                select(c.final_score, c.capture_count, c.drift_count, c.warning_count, c.suppressed_count).where(
                    and_(c.category == category, c.week_of == week_of.isoformat())
                )
            ).all()
            top_keywords = extract_top_keywords(session, category, week_of)
    except SQLAlchemyError as e:
        logger.warning("Failed to load scores for %s/%s: %s", category, week_of, e)
        return _build(category, week_of, 0.0, 0, 0, 0, 0, 0, [])

    return _build(
        category,
        week_of,
        total_severity=sum(r.final_score for r in rows),
        document_count=len(rows),
        capture_count=sum(r.capture_count for r in rows),
        drift_count=sum(r.drift_count for r in rows),
        warning_count=sum(r.warning_count for r in rows),
        suppressed_count=sum(r.suppressed_count for r in rows),
        top_keywords=top_keywords,
    )


def _aggregate_row(aggregate: WeeklyAggregate) -> dict:
    return {
        "category": aggregate.category,
        "week_of": aggregate.week_of.isoformat(),
        "total_severity": aggregate.total_severity,
        "document_count": aggregate.document_count,
        "avg_severity_per_doc": aggregate.avg_severity_per_doc,
        "capture_proportion": aggregate.capture_proportion,
        "drift_proportion": aggregate.drift_proportion,
        "warning_proportion": aggregate.warning_proportion,
        "severity_mix": aggregate.severity_mix,
        "capture_match_count": aggregate.capture_match_count,
        "drift_match_count": aggregate.drift_match_count,
        "warning_match_count": aggregate.warning_match_count,
        "suppressed_match_count": aggregate.suppressed_match_count,
        "top_keywords": list(aggregate.top_keywords),
        "computed_at": aggregate.computed_at,
    }


def store_weekly_aggregate(aggregate: WeeklyAggregate) -> bool:
    """Upsert an aggregate keyed by (category, week_of).

    Returns False when nothing was stored.
    """
    if not is_db_available():
        logger.warning("DATABASE_URL not set, skipping storage of %s/%s", aggregate.category, aggregate.week_of)
        return False

    try:
        with get_session() as session:
            upsert_row(session, weekly_aggregates, ("category", "week_of"), _aggregate_row(aggregate))
            session.commit()
    except SQLAlchemyError as e:
        logger.error("Failed to store weekly aggregate %s/%s: %s", aggregate.category, aggregate.week_of, e)
        return False

    logger.info("Stored weekly aggregate %s/%s", aggregate.category, aggregate.week_of)
    return True


def _row_to_aggregate(row) -> WeeklyAggregate:
    return WeeklyAggregate(
        category=row.category,
        week_of=date.fromisoformat(row.week_of),
        total_severity=row.total_severity,
        document_count=row.document_count,
        avg_severity_per_doc=row.avg_severity_per_doc,
        capture_proportion=row.capture_proportion,
        drift_proportion=row.drift_proportion,
        warning_proportion=row.warning_proportion,
        severity_mix=row.severity_mix,
        capture_match_count=row.capture_match_count,
        drift_match_count=row.drift_match_count,
        warning_match_count=row.warning_match_count,
        suppressed_match_count=row.suppressed_match_count,
        top_keywords=list(row.top_keywords or []),
        computed_at=row.computed_at,
    )


def load_weekly_aggregates(
    category: str | None = None,
    start: date | None = None,
    end: date | None = None,
) -> list[WeeklyAggregate]:
    """Stored aggregates ordered by category then week, optionally filtered.

    start and end are inclusive week bounds.
    """
    if not is_db_available():
        return []

    c = weekly_aggregates.c
    stmt = select(weekly_aggregates).order_by(c.category, c.week_of)
    if category is not None:
        stmt = stmt.where(c.category == category)
    if start is not None:
        stmt = stmt.where(c.week_of >= start.isoformat())
    if end is not None:
        stmt = stmt.where(c.week_of <= end.isoformat())

    try:
        with get_session() as session:
            rows = session.execute(stmt).all()
    except SQLAlchemyError as e:
        logger.warning("Failed to load weekly aggregates: %s", e)
        return []
    return [_row_to_aggregate(row) for row in rows]


def compute_all_weekly_aggregates(
    start: date | None = None,
    end: date | None = None,
    store: bool = True,
) -> dict[str, list[WeeklyAggregate]]:
    """Recompute the aggregate of every (category, week) present in document scores.

    Returns aggregates grouped by category, in week order.
    """
    if not is_db_available():
        logger.warning("DATABASE_URL not set, no weekly aggregates computed")
        return {}

    c = document_scores.c
    stmt = select(c.category, c.week_of).distinct().order_by(c.category, c.week_of)
    if start is not None:
        stmt = stmt.where(c.week_of >= start.isoformat())
    if end is not None:
        stmt = stmt.where(c.week_of <= end.isoformat())

    try:
        with get_session() as session:
            groups = session.execute(stmt).all()
    except SQLAlchemyError as e:
        logger.warning("Failed to list scored weeks, no weekly aggregates computed: %s", e)
        return {}

    result: dict[str, list[WeeklyAggregate]] = {}
    for category, week_of in groups:
        aggregate = compute_weekly_aggregate(category, date.fromisoformat(week_of))
        if store:
            store_weekly_aggregate(aggregate)
        result.setdefault(category, []).append(aggregate)

    logger.info("Computed %d weekly aggregates across %d categories", len(groups), len(result))
    return result
