"""Habit registry — definitions, priority scoring and soft deletion.

Habits are never removed: deactivation hides them from listings while their
tracking history stays valid.
"""

from __future__ import annotations

import logging
from typing import Any

from habitboard.tracker import scoring
from habitboard.tracker.errors import NotFoundError, ValidationError
from habitboard.tracker.models import Habit
from habitboard.tracker.palette import is_valid_color
from habitboard.tracker.store import Store

logger = logging.getLogger(__name__)

RATING_MIN = 1
RATING_MAX = 5


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Habit name is required")
    return name.strip()


def validate_rating(label: str, value: Any) -> int:
    if not _is_int(value) or not RATING_MIN <= value <= RATING_MAX:
        raise ValidationError(f"{label} must be an integer between {RATING_MIN} and {RATING_MAX}, got {value!r}")
    return value


def validate_color(color_tag: Any) -> str:
    if not is_valid_color(color_tag):
        raise ValidationError(f"Unknown color tag: {color_tag!r}")
    return color_tag


def validate_priority(value: Any) -> int:
    if not _is_int(value) or value < 0:
        raise ValidationError(f"priority_score must be a non-negative integer, got {value!r}")
    return value


class HabitRegistry:
    def __init__(self, store: Store):
        self.store = store

    async def create(
        self,
        name: str,
        impact: int,
        difficulty: int,
        time_effort: int,
        color_tag: str,
    ) -> Habit:
        clean_name = validate_name(name)
        validate_rating("impact", impact)
        validate_rating("difficulty", difficulty)
        validate_rating("time_effort", time_effort)
        validate_color(color_tag)

        score = scoring.priority_score(impact, difficulty, time_effort)
        habit = await self.store.insert_habit(clean_name, score, color_tag)
        logger.info("Created habit %s (%r, score=%d)", habit.id, habit.name, habit.priority_score)
        return habit

    async def create_with_score(self, name: str, priority_score: int, color_tag: str) -> Habit:
        """Create a habit with a hand-picked point value instead of ratings."""
        clean_name = validate_name(name)
        validate_priority(priority_score)
        validate_color(color_tag)

        habit = await self.store.insert_habit(clean_name, priority_score, color_tag)
        logger.info("Created habit %s (%r, manual score=%d)", habit.id, habit.name, habit.priority_score)
        return habit

    async def get(self, habit_id: int) -> Habit:
        habit = await self.store.get_habit(habit_id)
        if habit is None:
            raise NotFoundError("habit", habit_id)
        return habit

    async def update(
        self,
        habit_id: int,
        name: str | None = None,
        priority_score: int | None = None,
        color_tag: str | None = None,
    ) -> Habit:
        fields: dict[str, Any] = {}
        if name is not None:
            fields["name"] = validate_name(name)
        if priority_score is not None:
            fields["priority_score"] = validate_priority(priority_score)
        if color_tag is not None:
            fields["color_tag"] = validate_color(color_tag)

        habit = await self.store.update_habit(habit_id, fields)
        if habit is None:
            raise NotFoundError("habit", habit_id)
        if fields:
            logger.info("Updated habit %s: %s", habit_id, sorted(fields))
        return habit

    async def deactivate(self, habit_id: int) -> Habit:
        habit = await self.get(habit_id)
        if not habit.active:
            return habit
        updated = await self.store.update_habit(habit_id, {"active": False})
        if updated is None:
            raise NotFoundError("habit", habit_id)
        logger.info("Deactivated habit %s", habit_id)
        return updated

    async def list(self) -> list[Habit]:
        """Active habits by name, plain code-point order (uppercase before lowercase)."""
        habits = await self.store.list_active_habits()
        return sorted((h for h in habits if h.active), key=lambda h: (h.name, h.id))
