"""Tracking ledger — one row per completion instance.

No dedup: adding twice on the same date records two completions, each scored.
"""

from __future__ import annotations

import logging
from datetime import date

from habitboard.tracker import scoring
from habitboard.tracker.clock import parse_date
from habitboard.tracker.errors import NotFoundError, ValidationError
from habitboard.tracker.models import TrackedInstance, TrackingEntry
from habitboard.tracker.store import Store

logger = logging.getLogger(__name__)

DEFAULT_MAX_INSTANCES_PER_DAY = 7


class TrackingLedger:
    def __init__(self, store: Store, max_instances_per_day: int = DEFAULT_MAX_INSTANCES_PER_DAY):
        self.store = store
        # Shown next to the counters; the ledger never enforces it
        self.max_instances_per_day = max_instances_per_day

    async def add_instance(self, habit_id: int, day: date | str) -> TrackingEntry:
        d = parse_date(day)
        # Deactivated habits still accept entries; only unknown ids are rejected
        if await self.store.get_habit(habit_id) is None:
            raise NotFoundError("habit", habit_id)
        entry = await self.store.insert_tracking(habit_id, d)
        logger.debug("Added instance %s for habit %s on %s", entry.id, habit_id, d)
        return entry

    async def remove_last_instance(self, habit_id: int, day: date | str) -> TrackingEntry | None:
        """Delete the most recent entry (highest id) for the habit on that date.

        Returns the removed entry, or None when there was nothing to remove.
        """
        d = parse_date(day)
        entries = [e for e in await self.store.list_tracking_by_date(d) if e.habit_id == habit_id]
        if not entries:
            return None
        last = max(entries, key=lambda e: e.id)
        if not await self.store.delete_tracking(last.id):
            logger.debug("Instance %s already gone for habit %s on %s", last.id, habit_id, d)
            return None
        logger.debug("Removed instance %s for habit %s on %s", last.id, habit_id, d)
        return TrackingEntry(id=last.id, habit_id=last.habit_id, date=last.date, completed=last.completed)

    async def count_by_date(self, day: date | str) -> dict[int, int]:
        return scoring.count_by_habit(await self.list_by_date(day))

    async def list_by_date(self, day: date | str) -> list[TrackedInstance]:
        return await self.store.list_tracking_by_date(parse_date(day))

    async def list_between(self, start: date | str, end: date | str) -> list[TrackedInstance]:
        s, e = parse_date(start), parse_date(end)
        if e < s:
            raise ValidationError(f"Range end {e} is before start {s}")
        return await self.store.list_tracking_between(s, e)

    async def clear_by_date(self, day: date | str) -> int:
        d = parse_date(day)
        removed = await self.store.delete_tracking_by_date(d)
        logger.info("Cleared %d instances on %s", removed, d)
        return removed
