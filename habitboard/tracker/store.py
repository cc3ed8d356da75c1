"""Persistence contract and its SQL implementation.

Tables: habits, habit_tracking, daily_score, conversations (see schema.py).
``SqlStore`` talks to an AsyncSession with plain ``text()`` SQL, commits after
every write and turns backend failures and malformed rows into StorageError.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from habitboard.tracker.errors import StorageError
from habitboard.tracker.models import (
    Conversation,
    DailyScore,
    Habit,
    TrackedInstance,
    TrackingEntry,
)

logger = logging.getLogger(__name__)

# asyncpg connect failures (refused, unreachable, timeout) surface as OSError,
# not wrapped by SQLAlchemy.
BACKEND_ERRORS = (SQLAlchemyError, OSError)

M = TypeVar("M", bound=BaseModel)

HABIT_COLUMNS = "id, name, priority_score, color_tag, active"
UPDATABLE_HABIT_FIELDS = frozenset({"name", "priority_score", "color_tag", "active"})

_TRACKED_SELECT = (
    "SELECT t.id, t.habit_id, t.date, t.completed, "
    "h.name AS habit_name, h.priority_score "
    "FROM habit_tracking t JOIN habits h ON h.id = t.habit_id "
)


def to_model(model: type[M], row: dict[str, Any]) -> M:
    """Validate a store row; a malformed row is a storage fault."""
    try:
        return model.model_validate(row)
    except PydanticValidationError as exc:
        raise StorageError(f"Malformed {model.__name__} row: {row!r}") from exc


class Store(ABC):
    """Async access to the four tracking tables."""

    # habits

    @abstractmethod
    async def insert_habit(self, name: str, priority_score: int, color_tag: str) -> Habit: ...

    @abstractmethod
    async def get_habit(self, habit_id: int) -> Habit | None: ...

    @abstractmethod
    async def list_active_habits(self) -> list[Habit]: ...

    @abstractmethod
    async def update_habit(self, habit_id: int, fields: dict[str, Any]) -> Habit | None: ...

    # habit_tracking

    @abstractmethod
    async def insert_tracking(self, habit_id: int, day: date) -> TrackingEntry: ...

    @abstractmethod
    async def list_tracking_by_date(self, day: date) -> list[TrackedInstance]:
        """Completed entries for ``day`` joined with the current habit row, by id."""

    @abstractmethod
    async def list_tracking_between(self, start: date, end: date) -> list[TrackedInstance]:
        """Same as list_tracking_by_date for the inclusive range [start, end]."""

    @abstractmethod
    async def list_tracking_dates(self, habit_id: int, since: date) -> list[date]:
        """Distinct dates on or after ``since`` with a completed entry, newest first."""

    @abstractmethod
    async def delete_tracking(self, entry_id: int) -> bool: ...

    @abstractmethod
    async def delete_tracking_by_date(self, day: date) -> int: ...

    # daily_score

    @abstractmethod
    async def get_daily_score(self, day: date) -> DailyScore | None: ...

    @abstractmethod
    async def upsert_daily_score(self, score: DailyScore) -> DailyScore: ...

    @abstractmethod
    async def list_daily_scores(self, start: date, end: date) -> list[DailyScore]: ...

    # conversations

    @abstractmethod
    async def insert_conversation(self, conversation: Conversation) -> Conversation: ...

    @abstractmethod
    async def list_conversations(
        self,
        user_id: str,
        session_id: str | None = None,
        limit: int = 20,
    ) -> list[Conversation]: ...


class SqlStore(Store):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _rollback(self) -> None:
        # A dead connection can fail the rollback too; the original error wins.
        try:
            await self.session.rollback()
        except BACKEND_ERRORS as exc:
            logger.warning("Rollback failed: %s", exc)

    async def _rows(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        try:
            result = await self.session.execute(text(sql), params or {})
            columns = list(result.keys())
            return [dict(zip(columns, r)) for r in result.fetchall()]
        except BACKEND_ERRORS as exc:
            logger.error("Store read failed: %s", exc)
            raise StorageError("Store read failed") from exc

    async def _execute_write(self, sql: str, params: dict[str, Any]):
        try:
            result = await self.session.execute(text(sql), params)
            payload = (
                [dict(zip(list(result.keys()), r)) for r in result.fetchall()]
                if result.returns_rows
                else result.rowcount
            )
            await self.session.commit()
            return payload
        except BACKEND_ERRORS as exc:
            logger.error("Store write failed: %s", exc)
            await self._rollback()
            raise StorageError("Store write failed") from exc

    async def _write(self, sql: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        """Run one RETURNING statement and commit."""
        return await self._execute_write(sql, params)

    async def _write_count(self, sql: str, params: dict[str, Any]) -> int:
        """Run one statement without RETURNING and commit; returns the rowcount."""
        return int(await self._execute_write(sql, params))

    # habits

    async def insert_habit(self, name: str, priority_score: int, color_tag: str) -> Habit:
        rows = await self._write(
            "INSERT INTO habits (name, priority_score, color_tag, active) "
            "VALUES (:name, :priority_score, :color_tag, TRUE) "
            f"RETURNING {HABIT_COLUMNS}",
            {"name": name, "priority_score": priority_score, "color_tag": color_tag},
        )
        if not rows:
            raise StorageError("Insert into habits returned no row")
        return to_model(Habit, rows[0])

    async def get_habit(self, habit_id: int) -> Habit | None:
        rows = await self._rows(f"SELECT {HABIT_COLUMNS} FROM habits WHERE id = :id", {"id": habit_id})
        return to_model(Habit, rows[0]) if rows else None

    async def list_active_habits(self) -> list[Habit]:
        rows = await self._rows(f"SELECT {HABIT_COLUMNS} FROM habits WHERE active = TRUE ORDER BY name")
        return [to_model(Habit, r) for r in rows]

    async def update_habit(self, habit_id: int, fields: dict[str, Any]) -> Habit | None:
        unknown = set(fields) - UPDATABLE_HABIT_FIELDS
        if unknown:
            raise ValueError(f"Not updatable on habits: {sorted(unknown)}")
        if not fields:
            return await self.get_habit(habit_id)
        assignments = ", ".join(f"{col} = :{col}" for col in sorted(fields))
        rows = await self._write(
            f"UPDATE habits SET {assignments} WHERE id = :id RETURNING {HABIT_COLUMNS}",
            {**fields, "id": habit_id},
        )
        return to_model(Habit, rows[0]) if rows else None

    # habit_tracking

    async def insert_tracking(self, habit_id: int, day: date) -> TrackingEntry:
        rows = await self._write(
            "INSERT INTO habit_tracking (habit_id, date, completed) "
            "VALUES (:habit_id, :date, TRUE) "
            "RETURNING id, habit_id, date, completed",
            {"habit_id": habit_id, "date": day},
        )
        if not rows:
            raise StorageError("Insert into habit_tracking returned no row")
        return to_model(TrackingEntry, rows[0])

    async def list_tracking_by_date(self, day: date) -> list[TrackedInstance]:
        rows = await self._rows(
            _TRACKED_SELECT + "WHERE t.date = :date AND t.completed = TRUE ORDER BY t.id",
            {"date": day},
        )
        return [to_model(TrackedInstance, r) for r in rows]

    async def list_tracking_between(self, start: date, end: date) -> list[TrackedInstance]:
        rows = await self._rows(
            _TRACKED_SELECT
            + "WHERE t.date >= :start AND t.date <= :end AND t.completed = TRUE "
            "ORDER BY t.date, t.id",
            {"start": start, "end": end},
        )
        return [to_model(TrackedInstance, r) for r in rows]

    async def list_tracking_dates(self, habit_id: int, since: date) -> list[date]:
        rows = await self._rows(
            "SELECT DISTINCT date FROM habit_tracking "
            "WHERE habit_id = :habit_id AND date >= :since AND completed = TRUE "
            "ORDER BY date DESC",
            {"habit_id": habit_id, "since": since},
        )
        return [r["date"] for r in rows]

    async def delete_tracking(self, entry_id: int) -> bool:
        count = await self._write_count("DELETE FROM habit_tracking WHERE id = :id", {"id": entry_id})
        return count > 0

    async def delete_tracking_by_date(self, day: date) -> int:
        return await self._write_count("DELETE FROM habit_tracking WHERE date = :date", {"date": day})

    # daily_score

    async def get_daily_score(self, day: date) -> DailyScore | None:
        rows = await self._rows(
            "SELECT date, habit_score_total, daily_note, note_points FROM daily_score WHERE date = :date",
            {"date": day},
        )
        return to_model(DailyScore, rows[0]) if rows else None

    async def upsert_daily_score(self, score: DailyScore) -> DailyScore:
        rows = await self._write(
            "INSERT INTO daily_score (date, habit_score_total, daily_note, note_points) "
            "VALUES (:date, :habit_score_total, :daily_note, :note_points) "
            "ON CONFLICT (date) DO UPDATE SET "
            "habit_score_total = EXCLUDED.habit_score_total, "
            "daily_note = EXCLUDED.daily_note, "
            "note_points = EXCLUDED.note_points, "
            "updated_at = now() "
            "RETURNING date, habit_score_total, daily_note, note_points",
            {
                "date": score.date,
                "habit_score_total": score.habit_score_total,
                "daily_note": score.daily_note,
                "note_points": score.note_points,
            },
        )
        if not rows:
            raise StorageError("Upsert into daily_score returned no row")
        return to_model(DailyScore, rows[0])

    async def list_daily_scores(self, start: date, end: date) -> list[DailyScore]:
        rows = await self._rows(
            "SELECT date, habit_score_total, daily_note, note_points FROM daily_score "
            "WHERE date >= :start AND date <= :end ORDER BY date",
            {"start": start, "end": end},
        )
        return [to_model(DailyScore, r) for r in rows]

    # conversations

    async def insert_conversation(self, conversation: Conversation) -> Conversation:
        rows = await self._write(
            "INSERT INTO conversations "
            "(session_id, user_id, message, response, tokens_used, model_used, created_at) "
            "VALUES (:session_id, :user_id, :message, :response, :tokens_used, :model_used, :created_at) "
            "RETURNING id, session_id, user_id, message, response, tokens_used, model_used, created_at",
            conversation.model_dump(exclude={"id"}),
        )
        if not rows:
            raise StorageError("Insert into conversations returned no row")
        return to_model(Conversation, rows[0])

    async def list_conversations(
        self,
        user_id: str,
        session_id: str | None = None,
        limit: int = 20,
    ) -> list[Conversation]:
        query = (
            "SELECT id, session_id, user_id, message, response, tokens_used, model_used, created_at "
            "FROM conversations WHERE user_id = :user_id"
        )
        params: dict[str, Any] = {"user_id": user_id, "limit": limit}
        if session_id is not None:
            query += " AND session_id = :session_id"
            params["session_id"] = session_id
        query += " ORDER BY created_at ASC LIMIT :limit"
        rows = await self._rows(query, params)
        return [to_model(Conversation, r) for r in rows]
