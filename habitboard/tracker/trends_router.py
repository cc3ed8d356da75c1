"""Chart and streak endpoints — read-only."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from habitboard.auth import verify_api_key
from habitboard.config import settings
from habitboard.tracker.deps import get_trends
from habitboard.tracker.models import HabitSeries, SeriesPoint, StreakSummary
from habitboard.tracker.trends import TrendCalculator

router = APIRouter(prefix="/trends", tags=["trends"])


@router.get("/daily", response_model=list[SeriesPoint])
async def daily_series(
    trends: TrendCalculator = Depends(get_trends),
    _: str = Depends(verify_api_key),
    days: int | None = Query(default=None, ge=1, le=366, description="Window length (default: TREND_DAYS)"),
    end: str | None = Query(default=None, description="Last date of the window (default: today)"),
    include_notes: bool = Query(default=False),
) -> list[SeriesPoint]:
    return await trends.daily_series(days or settings.trend_days, end, include_notes)


@router.get("/habits/{habit_id}", response_model=HabitSeries)
async def habit_series(
    habit_id: int,
    trends: TrendCalculator = Depends(get_trends),
    _: str = Depends(verify_api_key),
    days: int | None = Query(default=None, ge=1, le=366),
    end: str | None = Query(default=None),
) -> HabitSeries:
    return await trends.habit_series(habit_id, days or settings.trend_days, end)


@router.get("/streaks", response_model=list[StreakSummary])
async def streaks(
    trends: TrendCalculator = Depends(get_trends),
    _: str = Depends(verify_api_key),
    as_of: str | None = Query(default=None, description="Reference date (default: today)"),
) -> list[StreakSummary]:
    return await trends.streaks(as_of)
