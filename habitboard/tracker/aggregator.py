"""Daily score aggregator — the persisted per-date total.

Two independent write paths share one ``daily_score`` row per date:

- habit completions (``compute_and_persist``) rewrite ``habit_score_total``
- the journal note (``save_note``) rewrites ``daily_note`` / ``note_points``

Each path reads the existing row first and carries the other half forward,
so neither clobbers the other. The read-modify-write is not atomic: two
concurrent writers on the same date can lose an update.
"""

from __future__ import annotations

import logging
from datetime import date

from habitboard.tracker import scoring
from habitboard.tracker.clock import parse_date
from habitboard.tracker.ledger import TrackingLedger
from habitboard.tracker.models import DailyScore, NoteResult, ScoreResult, TrackingEntry
from habitboard.tracker.store import Store

logger = logging.getLogger(__name__)


class DailyScoreAggregator:
    def __init__(
        self,
        store: Store,
        ledger: TrackingLedger,
        chars_per_point: int = scoring.NOTE_CHARS_PER_POINT,
    ):
        self.store = store
        self.ledger = ledger
        self.chars_per_point = chars_per_point

    async def compute_and_persist(self, day: date | str) -> ScoreResult:
        """Recompute the habit half of the day's score and upsert it.

        Also serves as "finalize day". Idempotent for an unchanged ledger.
        """
        d = parse_date(day)
        instances = await self.ledger.list_by_date(d)
        habit_total = scoring.habit_score_total(instances)

        existing = await self.store.get_daily_score(d)
        row = DailyScore(
            date=d,
            habit_score_total=habit_total,
            daily_note=existing.daily_note if existing else None,
            note_points=existing.note_points if existing else 0,
        )
        saved = await self.store.upsert_daily_score(row)
        logger.info(
            "Daily score %s: habits=%d notes=%d (%d instances)",
            d, saved.habit_score_total, saved.note_points, len(instances),
        )
        return ScoreResult(
            date=d,
            habit_score_total=saved.habit_score_total,
            note_points=saved.note_points,
            total_score=saved.total_score,
        )

    async def save_note(self, day: date | str, note_text: str | None) -> NoteResult:
        """Store the day's note and its points, keeping the habit total."""
        d = parse_date(day)
        text = note_text or ""
        points = scoring.calculate_note_points(text, self.chars_per_point)

        existing = await self.store.get_daily_score(d)
        row = DailyScore(
            date=d,
            habit_score_total=existing.habit_score_total if existing else 0,
            daily_note=text,
            note_points=points,
        )
        await self.store.upsert_daily_score(row)
        logger.info("Saved note for %s: %d chars, %d points", d, len(text), points)
        return NoteResult(date=d, note_points=points, total_characters=len(text))

    async def get_daily_score(self, day: date | str) -> DailyScore | None:
        return await self.store.get_daily_score(parse_date(day))

    # Ledger mutations that keep the persisted total in step

    async def add_and_recompute(self, habit_id: int, day: date | str) -> tuple[TrackingEntry, ScoreResult]:
        entry = await self.ledger.add_instance(habit_id, day)
        return entry, await self.compute_and_persist(entry.date)

    async def remove_and_recompute(
        self, habit_id: int, day: date | str
    ) -> tuple[TrackingEntry | None, ScoreResult]:
        d = parse_date(day)
        removed = await self.ledger.remove_last_instance(habit_id, d)
        return removed, await self.compute_and_persist(d)

    async def clear_and_recompute(self, day: date | str) -> tuple[int, ScoreResult]:
        d = parse_date(day)
        removed = await self.ledger.clear_by_date(d)
        return removed, await self.compute_and_persist(d)
