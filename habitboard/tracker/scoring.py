"""Pure stateless scoring functions — math only, never raises."""

from __future__ import annotations

import math
from typing import Iterable

from habitboard.tracker.models import TrackedInstance

IMPACT_WEIGHT = 0.4
DIFFICULTY_WEIGHT = 0.4
TIME_EFFORT_WEIGHT = 0.2
SCALE = 8.33

NOTE_CHARS_PER_POINT = 20


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def composite_rating(impact: int, difficulty: int, time_effort: int) -> float:
    """Weighted 1–5 composite of the three habit dimensions."""
    return impact * IMPACT_WEIGHT + difficulty * DIFFICULTY_WEIGHT + time_effort * TIME_EFFORT_WEIGHT


def priority_score(impact: int, difficulty: int, time_effort: int) -> int:
    """Point value of one completion.

    The composite is scaled by 8.33, so the reachable range is 8 for (1, 1, 1)
    up to 42 for (5, 5, 5), not a clean 0–100. Inputs are validated by the
    registry; this function assumes ints in 1–5.
    """
    return _round_half_up(composite_rating(impact, difficulty, time_effort) * SCALE)


def calculate_note_points(text: str | None, chars_per_point: int = NOTE_CHARS_PER_POINT) -> int:
    """One point per full block of ``chars_per_point`` characters.

    Empty or missing text yields 0. Uncapped: length limits belong to the caller.
    """
    if not text or chars_per_point <= 0:
        return 0
    return len(text) // chars_per_point


def count_by_habit(instances: Iterable[TrackedInstance]) -> dict[int, int]:
    counts: dict[int, int] = {}
    for inst in instances:
        counts[inst.habit_id] = counts.get(inst.habit_id, 0) + 1
    return counts


def habit_score_total(instances: Iterable[TrackedInstance]) -> int:
    """Sum of ``count × priority_score`` per habit.

    The priority comes from the joined snapshot on each instance, so a habit
    re-scored since its entries were written is counted at the new value.
    """
    groups: dict[int, tuple[int, int]] = {}
    for inst in instances:
        count, _ = groups.get(inst.habit_id, (0, inst.priority_score))
        groups[inst.habit_id] = (count + 1, inst.priority_score)
    return sum(count * score for count, score in groups.values())


def completion_pct(days_completed: int, num_days: int) -> float:
    """Share of days with at least one entry, as 0–100. Clamped."""
    if num_days <= 0:
        return 0.0
    return round(min(max(days_completed / num_days, 0.0), 1.0) * 100.0, 1)
