from datetime import date, datetime, timedelta, timezone
from typing import Iterator, Sequence

from engine.models import Item

PERIOD_DAYS = {'7d': 7, '30d': 30, '90d': 90}
PERIODS = ('7d', '30d', '90d', '1y', 'all')


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_day(value: datetime) -> date:
    return as_utc(value).date()


def one_year_before(value: datetime) -> datetime:
    try:
        return value.replace(year=value.year - 1)
    except ValueError:
        # Feb 29 has no counterpart in the previous year
        return value.replace(year=value.year - 1, day=28)


def period_start(period: str, now: datetime, items: Sequence[Item] = ()) -> datetime:
    """Start of a reporting period ending at now.

    For 'all' this is the creation time of the oldest item, or now when there are none.
    """
    if period in PERIOD_DAYS:
        return now - timedelta(days=PERIOD_DAYS[period])
    if period == '1y':
        return one_year_before(now)
    if period == 'all':
        if not items:
            return now
        return min(as_utc(item.created_at) for item in items)
    raise ValueError(f"Unknown period: {period!r} (expected one of {', '.join(PERIODS)})")


def day_range(start: date, end: date) -> Iterator[date]:
    """Every calendar day from start to end, inclusive"""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def month_start(now: datetime) -> datetime:
    now = as_utc(now)
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

