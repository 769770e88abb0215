"""Keyword frequency trends against a rolling history, and the anomalies they raise.

Each run counts how many items mention every tier keyword of a category,
compares the counts with the average of previously recorded trend periods,
and flags keywords appearing at least ANOMALY_RATIO times as often as usual.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Mapping, Sequence

from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError

from common.db import get_session, is_db_available, keyword_trends
from detect_drift.models import AnomalySeverity, KeywordTrend, TrendAnomaly
from ingest_items.models import ContentItem
from keyword_rules.load_rules import get_rule_config
from keyword_rules.models import Category, RuleConfig
from score_documents.match_keywords import match_keyword

logger = logging.getLogger(__name__)

ANOMALY_RATIO = 2.0
MIN_ANOMALY_COUNT = 2
MEDIUM_SEVERITY_RATIO = 3.0
HIGH_SEVERITY_RATIO = 5.0

TREND_PERIOD = timedelta(days=7)
BASELINE_LOOKBACK = timedelta(days=180)


def count_keywords_in_items(
    items: Sequence[ContentItem],
    category: Category | str,
    rules: RuleConfig | None = None,
) -> dict[str, int]:
    """Number of valid items mentioning each tier keyword of the category.

    Keywords with no mentions are left out; an unknown category yields {}.
    """
    rule_set = (rules or get_rule_config()).rules_for(category)
    if rule_set is None:
        return {}

    texts = [item.match_text for item in items if item.is_valid]
    counts: dict[str, int] = {}
    for _, keyword in rule_set.tiered_keywords():
        count = sum(1 for text in texts if match_keyword(text, keyword))
        if count > 0:
            counts[keyword] = count
    return counts


def trend_ratio(current_count: int, baseline_avg: float) -> float:
    """current / baseline; inf for a keyword with no history, 0 when both are 0."""
    if baseline_avg > 0:
        return current_count / baseline_avg
    return math.inf if current_count > 0 else 0.0


def calculate_trends(
    current_counts: Mapping[str, int],
    baseline_counts: Mapping[str, float],
    category: str,
    period_end: datetime | None = None,
) -> list[KeywordTrend]:
    """One trend per counted keyword over the seven days ending at period_end."""
    period_end = period_end or datetime.now(timezone.utc)
    period_start = period_end - TREND_PERIOD

    trends = []
    for keyword, count in current_counts.items():
        baseline_avg = baseline_counts.get(keyword, 0.0)
        ratio = trend_ratio(count, baseline_avg)
        trends.append(
            KeywordTrend(
                keyword=keyword,
                category=category,
                current_count=count,
                baseline_avg=baseline_avg,
                ratio=ratio,
                is_anomaly=ratio >= ANOMALY_RATIO and count >= MIN_ANOMALY_COUNT,
                period_start=period_start,
                period_end=period_end,
            )
        )
    return trends


def anomaly_severity(ratio: float) -> AnomalySeverity:
    if ratio >= HIGH_SEVERITY_RATIO:
        return AnomalySeverity.HIGH
    if ratio >= MEDIUM_SEVERITY_RATIO:
        return AnomalySeverity.MEDIUM
    return AnomalySeverity.LOW


def detect_anomalies(trends: Sequence[KeywordTrend], detected_at: datetime | None = None) -> list[TrendAnomaly]:
    detected_at = detected_at or datetime.now(timezone.utc)
    return [
        TrendAnomaly(
            keyword=trend.keyword,
            category=trend.category,
            ratio=trend.ratio,
            severity=anomaly_severity(trend.ratio),
            message=(
                f'"{trend.keyword}" appeared {trend.current_count} times '
                f"({trend.ratio:.1f}x above 6-month baseline of {trend.baseline_avg:.1f})"
            ),
            detected_at=detected_at,
        )
        for trend in trends
        if trend.is_anomaly
    ]


def record_trends(trends: Sequence[KeywordTrend]) -> int:
    """Append trends to history. Returns the number written, 0 on failure."""
    if not is_db_available() or not trends:
        return 0

    created_at = datetime.now(timezone.utc)
    try:
        with get_session() as session:
            session.execute(
                keyword_trends.insert(),
                [
                    {
                        "keyword": trend.keyword,
                        "category": trend.category,
                        "count": trend.current_count,
                        "baseline_avg": trend.baseline_avg,
                        "ratio": trend.ratio,
                        "is_anomaly": trend.is_anomaly,
                        "period_start": trend.period_start,
                        "period_end": trend.period_end,
                        "created_at": created_at,
                    }
                    for trend in trends
                ],
            )
            session.commit()
    except SQLAlchemyError as e:
        logger.error("Failed to record %d keyword trends: %s", len(trends), e)
        return 0

    logger.info("Recorded %d keyword trends", len(trends))
    return len(trends)


def get_baseline_counts(category: str, now: datetime | None = None) -> dict[str, float]:
    """Average recorded count per keyword over periods starting in the last 180 days."""
    if not is_db_available():
        return {}

    since = (now or datetime.now(timezone.utc)) - BASELINE_LOOKBACK
    c = keyword_trends.c
    try:
        with get_session() as session:
            rows = session.execute(
                select(c.keyword, c.count).where(and_(c.category == category, c.period_start >= since))
            ).all()
    except SQLAlchemyError as e:
        logger.warning("Failed to load keyword history for %s: %s", category, e)
        return {}

    totals: dict[str, list[int]] = {}
    for keyword, count in rows:
        totals.setdefault(keyword, []).append(count)
    return {keyword: sum(counts) / len(counts) for keyword, counts in totals.items()}


def run_trend_analysis(
    items: Sequence[ContentItem],
    category: Category | str,
    rules: RuleConfig | None = None,
    record: bool = True,
) -> list[TrendAnomaly]:
    """Count keywords in items, compare against history, and return anomalies.

    The trends are recorded afterwards so they never count toward their own
    baseline.
    """
    category_key = category.value if isinstance(category, Category) else category
    current = count_keywords_in_items(items, category_key, rules)
    trends = calculate_trends(current, get_baseline_counts(category_key), category_key)
    anomalies = detect_anomalies(trends)
    if record:
        record_trends(trends)
    if anomalies:
        logger.info("%d keyword anomalies in %s", len(anomalies), category_key)
    return anomalies
