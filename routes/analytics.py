from fastapi import APIRouter, Depends
from typing import List
from dependencies import get_insight_engine
from engine import InsightEngine
from engine.models import (
    AnalyticsData, CategoryDistribution, Insight, OverallStats, Period,
    RatingBucket, TimeSeriesPoint
)

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.get("")
async def get_all_analytics(
    period: Period = '30d',
    engine: InsightEngine = Depends(get_insight_engine)
) -> AnalyticsData:
    """All analytics facets for the dashboard in one call"""
    return await engine.all_analytics(period)


@router.get("/overview")
async def get_overview(engine: InsightEngine = Depends(get_insight_engine)) -> OverallStats:
    return await engine.overall_stats()


@router.get("/timeseries")
async def get_time_series(
    period: Period = '30d',
    engine: InsightEngine = Depends(get_insight_engine)
) -> List[TimeSeriesPoint]:
    """Items added per day; days without activity are reported with count 0"""
    return await engine.time_series(period)


@router.get("/categories")
async def get_category_distribution(
    engine: InsightEngine = Depends(get_insight_engine)
) -> List[CategoryDistribution]:
    return await engine.category_distribution()


@router.get("/ratings")
async def get_rating_distribution(
    engine: InsightEngine = Depends(get_insight_engine)
) -> List[RatingBucket]:
    return await engine.rating_distribution()


@router.get("/insights")
async def get_insights(engine: InsightEngine = Depends(get_insight_engine)) -> List[Insight]:
    return await engine.insights()
