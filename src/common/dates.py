"""Date and week-bucket utilities."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

from dateutil.parser import parse as parse_date


def parse_datetime(value) -> datetime | None:
    """Parse a datetime from a date string (ISO or RFC 822), date or datetime.

    Naive values are assumed to be UTC. Returns None for empty input.

    Raises:
        ValueError: If a string value cannot be parsed.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        try:
            parsed = parse_date(str(value).strip())
        except OverflowError as e:
            raise ValueError(f"Date out of range: {value}") from e
    return to_utc(parsed)


def to_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def get_week_of(value: datetime | None = None) -> date:
    """Return the Monday (UTC) of the week containing value.

    Falls back to the current time when value is None.
    """
    moment = to_utc(value) if value is not None else datetime.now(timezone.utc)
    day = moment.date()
    return day - timedelta(days=day.weekday())


def week_to_range(week_of: date) -> tuple[datetime, datetime]:
    """Convert a week start to a [start, end) UTC datetime range of 7 days."""
    start = datetime.combine(week_of, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=7)
