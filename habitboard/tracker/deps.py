"""FastAPI dependencies that assemble engine components per request.

Settings are read here, at the edge, and passed into constructors.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from habitboard.config import settings
from habitboard.db import get_store
from habitboard.tracker.aggregator import DailyScoreAggregator
from habitboard.tracker.clock import Clock
from habitboard.tracker.ledger import TrackingLedger
from habitboard.tracker.registry import HabitRegistry
from habitboard.tracker.store import Store
from habitboard.tracker.trends import TrendCalculator


@lru_cache(maxsize=1)
def get_clock() -> Clock:
    return Clock(settings.default_tz)


def get_registry(store: Store = Depends(get_store)) -> HabitRegistry:
    return HabitRegistry(store)


def get_ledger(store: Store = Depends(get_store)) -> TrackingLedger:
    return TrackingLedger(store, settings.max_instances_per_day)


def get_aggregator(
    store: Store = Depends(get_store),
    ledger: TrackingLedger = Depends(get_ledger),
) -> DailyScoreAggregator:
    return DailyScoreAggregator(store, ledger, settings.note_chars_per_point)


def get_trends(
    store: Store = Depends(get_store),
    clock: Clock = Depends(get_clock),
) -> TrendCalculator:
    return TrendCalculator(store, clock, settings.streak_max_lookback_days)
