"""Cumulative views over a category's weekly severity history."""

from __future__ import annotations

import logging
from typing import Sequence

from aggregate_weeks.aggregate_weeks import load_weekly_aggregates
from aggregate_weeks.models import CumulativeScores, WeeklyAggregate

logger = logging.getLogger(__name__)

DECAY_HALF_LIFE_WEEKS = 8


def empty_cumulative_scores(category: str, half_life: float = DECAY_HALF_LIFE_WEEKS) -> CumulativeScores:
    return CumulativeScores(
        category=category,
        as_of=None,
        running_sum=0.0,
        running_average=0.0,
        week_count=0,
        high_water_mark=0.0,
        high_water_week=None,
        current_week_score=0.0,
        decay_weighted_score=0.0,
        decay_half_life_weeks=half_life,
    )


def compute_cumulative_from_weeks(
    category: str,
    weeks: Sequence[WeeklyAggregate],
    half_life: float = DECAY_HALF_LIFE_WEEKS,
) -> CumulativeScores:
    """Running sum, average, high-water mark and decay-weighted score.

    weeks must be in ascending week order. The most recent week has decay
    weight 1 and a week n weeks earlier has weight 0.5 ** (n / half_life).
    """
    if not weeks:
        return empty_cumulative_scores(category, half_life)

    running_sum = 0.0
    high_water_mark = 0.0
    high_water_week = weeks[0].week_of
    decay_weighted = 0.0
    last = len(weeks) - 1

    for index, week in enumerate(weeks):
        score = week.total_severity
        running_sum += score
        if score > high_water_mark:
            high_water_mark = score
            high_water_week = week.week_of
        decay_weighted += score * 0.5 ** ((last - index) / half_life)

    return CumulativeScores(
        category=category,
        as_of=weeks[last].week_of,
        running_sum=running_sum,
        running_average=running_sum / len(weeks),
        week_count=len(weeks),
        high_water_mark=high_water_mark,
        high_water_week=high_water_week,
        current_week_score=weeks[last].total_severity,
        decay_weighted_score=decay_weighted,
        decay_half_life_weeks=half_life,
    )


def compute_cumulative_scores(category: str, half_life: float = DECAY_HALF_LIFE_WEEKS) -> CumulativeScores:
    """Cumulative scores from stored aggregates; empty without a database."""
    weeks = load_weekly_aggregates(category=category)
    return compute_cumulative_from_weeks(category, weeks, half_life)


def compute_all_cumulative_scores(half_life: float = DECAY_HALF_LIFE_WEEKS) -> dict[str, CumulativeScores]:
    grouped: dict[str, list[WeeklyAggregate]] = {}
    for aggregate in load_weekly_aggregates():
        grouped.setdefault(aggregate.category, []).append(aggregate)

    logger.info("Computing cumulative scores for %d categories", len(grouped))
    return {
        category: compute_cumulative_from_weeks(category, weeks, half_life)
        for category, weeks in grouped.items()
    }
