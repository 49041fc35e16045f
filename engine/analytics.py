"""Statistics derived from the caller's categories and items.

Every facet re-reads from the gateway, so facets computed together by all_analytics()
may see slightly different snapshots if data changes mid-call.
"""

import asyncio
import logging
from collections import Counter
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, List, Optional, Sequence, Tuple

from config import DEFAULT_CATEGORY_COLOR, DEFAULT_CATEGORY_ICON
from engine.dates import PERIODS, as_utc, day_range, month_start, period_start, utc_day, utc_now
from engine.gateway import DataGateway
from engine.models import (
    AnalyticsData, Category, CategoryDistribution, Insight, Item,
    OverallStats, RatingBucket, TimeSeriesPoint
)
from engine.values import as_number, as_string

logger = logging.getLogger(__name__)


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def to_fixed(value: float, places: int = 0) -> str:
    """Format with a fixed number of decimals, rounding halves up (12.5 -> '13')."""
    step = Decimal(1).scaleb(-places)
    return str(Decimal(value).quantize(step, rounding=ROUND_HALF_UP))


def calculate_streak(items: Sequence[Item], today: Optional[date] = None) -> int:
    """Consecutive UTC days, ending today, on which at least one item was created."""
    if today is None:
        today = utc_now().date()

    days = sorted({utc_day(item.created_at) for item in items}, reverse=True)
    streak = 0
    for day in days:
        if (today - day).days == streak:
            streak += 1
        else:
            break
    return streak


def build_distribution(per_category: Sequence[Tuple[Category, List[Item]]]) -> List[CategoryDistribution]:
    total = sum(len(items) for _, items in per_category)
    distribution = [
        CategoryDistribution(
            category_id=category.id,
            category_name=category.name,
            category_icon=category.icon or DEFAULT_CATEGORY_ICON,
            category_color=category.color or DEFAULT_CATEGORY_COLOR,
            count=len(items),
            percentage=(len(items) / total * 100) if total > 0 else 0,
        )
        for category, items in per_category
    ]
    # sorted() is stable, so equal counts keep category order
    return sorted(distribution, key=lambda d: d.count, reverse=True)


class InsightEngine:

    def __init__(self, gateway: DataGateway, now: Callable[[], datetime] = utc_now):
        self.gateway = gateway
        self._now = now

    def now(self) -> datetime:
        return as_utc(self._now())

    async def _items_by_category(self) -> List[Tuple[Category, List[Item]]]:
        categories = await self.gateway.list_owned_categories()
        item_lists = await asyncio.gather(
            *(self.gateway.list_items(category.id) for category in categories)
        )
        return list(zip(categories, item_lists))

    async def _all_items(self) -> List[Item]:
        per_category = await self._items_by_category()
        return [item for _, items in per_category for item in items]

    async def overall_stats(self) -> OverallStats:
        per_category = await self._items_by_category()
        total_categories = len(per_category)
        total_items = sum(len(items) for _, items in per_category)
        categories_with_items = sum(1 for _, items in per_category if items)

        return OverallStats(
            total_categories=total_categories,
            total_items=total_items,
            categories_with_items=categories_with_items,
            average_items_per_category=total_items / total_categories if total_categories > 0 else 0,
        )

    async def time_series(self, period: str = '30d') -> List[TimeSeriesPoint]:
        """Items created per UTC day over the period; every day is present, zero-filled."""
        if period not in PERIODS:
            raise ValueError(f"Unknown period: {period!r}")
        now = self.now()
        items = await self._all_items()
        start = period_start(period, now, items)

        counts = Counter(
            utc_day(item.created_at).isoformat()
            for item in items
            if as_utc(item.created_at) >= start
        )
        return [
            TimeSeriesPoint(date=day.isoformat(), count=counts.get(day.isoformat(), 0))
            for day in day_range(start.date(), now.date())
        ]

    async def category_distribution(self) -> List[CategoryDistribution]:
        return build_distribution(await self._items_by_category())

    async def rating_distribution(self) -> List[RatingBucket]:
        """Histogram of ratings 1-5; always five buckets."""
        counts: Counter = Counter()
        for item in await self._all_items():
            rating = as_number(item.data.get('rating'))
            if rating is not None and 1 <= rating <= 5 and float(rating).is_integer():
                counts[int(rating)] += 1
        return [RatingBucket(rating=rating, count=counts.get(rating, 0)) for rating in range(1, 6)]

    async def insights(self) -> List[Insight]:
        per_category = await self._items_by_category()
        if not per_category:
            return []

        now = self.now()
        all_items = [item for _, items in per_category for item in items]
        insights: List[Insight] = []

        category_count = len(per_category)
        insights.append(Insight(
            type='stat',
            icon='📊',
            title='Total Items Tracked',
            value=len(all_items),
            description=f"Across {category_count} {_plural(category_count, 'category', 'categories')}",
        ))

        top = build_distribution(per_category)[0]
        if top.count > 0:
            insights.append(Insight(
                type='stat',
                icon=top.category_icon,
                title='Most Active Category',
                value=top.category_name,
                description=f"{top.count} items ({to_fixed(top.percentage, 1)}%)",
            ))

        ratings = [r for r in (as_number(item.data.get('rating')) for item in all_items) if r is not None]
        if ratings:
            average = sum(ratings) / len(ratings)
            insights.append(Insight(
                type='stat',
                icon='⭐',
                title='Average Rating',
                value=to_fixed(average, 1),
                description=f"Based on {len(ratings)} rated {_plural(len(ratings), 'item', 'items')}",
            ))

        streak = calculate_streak(all_items, today=now.date())
        if streak > 0:
            insights.append(Insight(
                type='achievement',
                icon='🔥',
                title='Current Streak',
                value=f"{streak} {_plural(streak, 'day', 'days')}",
                description='Keep it up!',
            ))

        first_of_month = month_start(now)
        this_month = sum(1 for item in all_items if as_utc(item.created_at) >= first_of_month)
        if this_month > 0:
            insights.append(Insight(
                type='stat',
                icon='📅',
                title='This Month',
                value=this_month,
                description=f"{this_month} {_plural(this_month, 'item', 'items')} added",
            ))

        statuses = [s for s in (as_string(item.data.get('status')) for item in all_items) if s]
        if statuses:
            completed = sum(1 for s in statuses if 'complete' in s.lower())
            rate = completed / len(statuses) * 100
            insights.append(Insight(
                type='stat',
                icon='✅',
                title='Completion Rate',
                value=f"{to_fixed(rate)}%",
                description=f"{completed} of {len(statuses)} completed",
            ))

        return insights

    async def all_analytics(self, period: str = '30d') -> AnalyticsData:
        overall_stats, time_series, category_distribution, rating_distribution, insights = await asyncio.gather(
            self.overall_stats(),
            self.time_series(period),
            self.category_distribution(),
            self.rating_distribution(),
            self.insights(),
        )
        logger.debug(f"Computed analytics for period {period}: {overall_stats.total_items} items")
        return AnalyticsData(
            overall_stats=overall_stats,
            time_series=time_series,
            category_distribution=category_distribution,
            rating_distribution=rating_distribution,
            insights=insights,
        )
