"""Streaks and chart series — read-only views over the ledger.

Series are computed in memory from tracking rows, not from the persisted
daily_score table, so days that were never finalized still show up.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

from habitboard.tracker import scoring
from habitboard.tracker.clock import Clock, parse_date
from habitboard.tracker.errors import NotFoundError, ValidationError
from habitboard.tracker.models import (
    HabitSeries,
    HabitSeriesPoint,
    SeriesPoint,
    StreakSummary,
    TrackedInstance,
)
from habitboard.tracker.store import Store

logger = logging.getLogger(__name__)

DEFAULT_MAX_LOOKBACK_DAYS = 3650


def streak_from_dates(dates: set[date], as_of: date, max_lookback_days: int) -> int:
    """Consecutive days with a completion, walking back from the day before ``as_of``.

    Today never counts, so an unfinished today does not break the streak.
    """
    streak = 0
    day = as_of - timedelta(days=1)
    while streak < max_lookback_days and day in dates:
        streak += 1
        day -= timedelta(days=1)
    return streak


def group_by_date(instances: list[TrackedInstance]) -> dict[date, list[TrackedInstance]]:
    grouped: dict[date, list[TrackedInstance]] = {}
    for inst in instances:
        grouped.setdefault(inst.date, []).append(inst)
    return grouped


class TrendCalculator:
    def __init__(self, store: Store, clock: Clock, max_lookback_days: int = DEFAULT_MAX_LOOKBACK_DAYS):
        self.store = store
        self.clock = clock
        self.max_lookback_days = max_lookback_days

    def _window(self, num_days: int, end: date | str | None) -> list[date]:
        if isinstance(num_days, bool) or not isinstance(num_days, int) or num_days < 1:
            raise ValidationError(f"num_days must be a positive integer, got {num_days!r}")
        last = parse_date(end) if end is not None else self.clock.today()
        return self.clock.last_n_days(num_days, last)

    async def current_streak(self, habit_id: int, as_of: date | str | None = None) -> int:
        ref = parse_date(as_of) if as_of is not None else self.clock.today()
        since = ref - timedelta(days=self.max_lookback_days)
        dates = set(await self.store.list_tracking_dates(habit_id, since))
        return streak_from_dates(dates, ref, self.max_lookback_days)

    async def streaks(self, as_of: date | str | None = None) -> list[StreakSummary]:
        habits = await self.store.list_active_habits()
        return [
            StreakSummary(
                habit_id=h.id,
                habit_name=h.name,
                streak=await self.current_streak(h.id, as_of),
            )
            for h in habits
        ]

    async def daily_series(
        self,
        num_days: int,
        end: date | str | None = None,
        include_notes: bool = False,
    ) -> list[SeriesPoint]:
        """Habit points per day for ``num_days`` days ending at ``end``, zero-filled.

        ``include_notes`` adds the persisted note points of each day.
        """
        days = self._window(num_days, end)
        grouped = group_by_date(await self.store.list_tracking_between(days[0], days[-1]))

        note_points: dict[date, int] = {}
        if include_notes:
            for row in await self.store.list_daily_scores(days[0], days[-1]):
                note_points[row.date] = row.note_points

        return [
            SeriesPoint(
                date=d,
                total_score=scoring.habit_score_total(grouped.get(d, [])) + note_points.get(d, 0),
            )
            for d in days
        ]

    async def habit_series(
        self,
        habit_id: int,
        num_days: int,
        end: date | str | None = None,
    ) -> HabitSeries:
        days = self._window(num_days, end)
        habit = await self.store.get_habit(habit_id)
        if habit is None:
            raise NotFoundError("habit", habit_id)

        counts: dict[date, int] = {}
        for inst in await self.store.list_tracking_between(days[0], days[-1]):
            if inst.habit_id == habit_id:
                counts[inst.date] = counts.get(inst.date, 0) + 1

        points = [
            HabitSeriesPoint(
                date=d,
                count=counts.get(d, 0),
                score_if_completed=habit.priority_score if counts.get(d, 0) > 0 else 0,
            )
            for d in days
        ]
        completed = sum(1 for p in points if p.count > 0)
        return HabitSeries(
            habit_id=habit_id,
            points=points,
            days_completed=completed,
            completion_pct=scoring.completion_pct(completed, num_days),
        )
