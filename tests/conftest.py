"""Shared fixtures for the test suite."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from habitboard.chat.router import get_provider
from habitboard.db import get_store
from habitboard.main import app
from habitboard.tracker.aggregator import DailyScoreAggregator
from habitboard.tracker.clock import Clock
from habitboard.tracker.deps import get_clock
from habitboard.tracker.errors import StorageError
from habitboard.tracker.ledger import TrackingLedger
from habitboard.tracker.models import (
    Conversation,
    DailyScore,
    Habit,
    TrackedInstance,
    TrackingEntry,
)
from habitboard.tracker.registry import HabitRegistry
from habitboard.tracker.store import Store
from habitboard.tracker.trends import TrendCalculator

TODAY = date(2025, 1, 16)

YELLOW = "#FBBA16"
RED = "#E22028"


# ---------------------------------------------------------------------------
# In-memory store (no real Postgres needed)
# ---------------------------------------------------------------------------

class InMemoryStore(Store):
    """Dict-backed Store. Set ``fail_on`` to a method name to make it raise StorageError."""

    def __init__(self):
        self.habits: dict[int, dict[str, Any]] = {}
        self.tracking: dict[int, dict[str, Any]] = {}
        self.scores: dict[date, dict[str, Any]] = {}
        self.conversations: list[Conversation] = []
        self.fail_on: set[str] = set()
        self.calls: list[str] = []
        self._habit_seq = 0
        self._tracking_seq = 0
        self._conversation_seq = 0

    def _check(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise StorageError(f"{name} failed") from ConnectionError("backend unavailable")

    def _tracked(self, row: dict[str, Any]) -> TrackedInstance:
        habit = self.habits[row["habit_id"]]
        return TrackedInstance(
            **row,
            habit_name=habit["name"],
            priority_score=habit["priority_score"],
        )

    async def insert_habit(self, name: str, priority_score: int, color_tag: str) -> Habit:
        self._check("insert_habit")
        self._habit_seq += 1
        row = {"id": self._habit_seq, "name": name, "priority_score": priority_score,
               "color_tag": color_tag, "active": True}
        self.habits[row["id"]] = row
        return Habit(**row)

    async def get_habit(self, habit_id: int) -> Habit | None:
        self._check("get_habit")
        row = self.habits.get(habit_id)
        return Habit(**row) if row else None

    async def list_active_habits(self) -> list[Habit]:
        self._check("list_active_habits")
        return [Habit(**r) for r in sorted(self.habits.values(), key=lambda r: r["name"]) if r["active"]]

    async def update_habit(self, habit_id: int, fields: dict[str, Any]) -> Habit | None:
        self._check("update_habit")
        row = self.habits.get(habit_id)
        if row is None:
            return None
        row.update(fields)
        return Habit(**row)

    async def insert_tracking(self, habit_id: int, day: date) -> TrackingEntry:
        self._check("insert_tracking")
        self._tracking_seq += 1
        row = {"id": self._tracking_seq, "habit_id": habit_id, "date": day, "completed": True}
        self.tracking[row["id"]] = row
        return TrackingEntry(**row)

    async def list_tracking_by_date(self, day: date) -> list[TrackedInstance]:
        self._check("list_tracking_by_date")
        return [self._tracked(r) for _, r in sorted(self.tracking.items()) if r["date"] == day]

    async def list_tracking_between(self, start: date, end: date) -> list[TrackedInstance]:
        self._check("list_tracking_between")
        rows = [r for r in self.tracking.values() if start <= r["date"] <= end]
        return [self._tracked(r) for r in sorted(rows, key=lambda r: (r["date"], r["id"]))]

    async def list_tracking_dates(self, habit_id: int, since: date) -> list[date]:
        self._check("list_tracking_dates")
        dates = {r["date"] for r in self.tracking.values() if r["habit_id"] == habit_id and r["date"] >= since}
        return sorted(dates, reverse=True)

    async def delete_tracking(self, entry_id: int) -> bool:
        self._check("delete_tracking")
        return self.tracking.pop(entry_id, None) is not None

    async def delete_tracking_by_date(self, day: date) -> int:
        self._check("delete_tracking_by_date")
        ids = [i for i, r in self.tracking.items() if r["date"] == day]
        for i in ids:
            del self.tracking[i]
        return len(ids)

    async def get_daily_score(self, day: date) -> DailyScore | None:
        self._check("get_daily_score")
        row = self.scores.get(day)
        return DailyScore(**row) if row else None

    async def upsert_daily_score(self, score: DailyScore) -> DailyScore:
        self._check("upsert_daily_score")
        self.scores[score.date] = score.model_dump(exclude={"total_score"})
        return DailyScore(**self.scores[score.date])

    async def list_daily_scores(self, start: date, end: date) -> list[DailyScore]:
        self._check("list_daily_scores")
        return [DailyScore(**self.scores[d]) for d in sorted(self.scores) if start <= d <= end]

    async def insert_conversation(self, conversation: Conversation) -> Conversation:
        self._check("insert_conversation")
        self._conversation_seq += 1
        saved = conversation.model_copy(update={"id": self._conversation_seq})
        self.conversations.append(saved)
        return saved

    async def list_conversations(
        self,
        user_id: str,
        session_id: str | None = None,
        limit: int = 20,
    ) -> list[Conversation]:
        self._check("list_conversations")
        rows = [
            c for c in self.conversations
            if c.user_id == user_id and (session_id is None or c.session_id == session_id)
        ]
        return sorted(rows, key=lambda c: c.created_at)[:limit]


# ---------------------------------------------------------------------------
# Fake DB session (for SqlStore tests)
# ---------------------------------------------------------------------------

class FakeResult:
    def __init__(self, rows: list[dict[str, Any]], rowcount: int = 0, returns_rows: bool = True):
        self._rows = rows
        self._keys = list(rows[0].keys()) if rows else []
        self.rowcount = rowcount
        self.returns_rows = returns_rows

    def keys(self):
        return self._keys

    def fetchall(self):
        return [tuple(r[k] for k in self._keys) for r in self._rows]


class FakeSession:
    """Minimal stand-in for AsyncSession; records every statement."""

    def __init__(self, results: list[FakeResult] | None = None, error: Exception | None = None):
        self._results = list(results or [])
        self.error = error
        self.statements: list[tuple[str, dict[str, Any]]] = []
        self.commits = 0
        self.rollbacks = 0

    async def execute(self, stmt, params=None):
        self.statements.append((str(stmt), params or {}))
        if self.error is not None:
            raise self.error
        return self._results.pop(0) if self._results else FakeResult([])

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

def fixed_clock(day: date = TODAY, tz: str = "UTC") -> Clock:
    return Clock(tz, now=lambda: datetime(day.year, day.month, day.day, 12, 0, tzinfo=timezone.utc))


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def clock() -> Clock:
    return fixed_clock()


@pytest.fixture()
def registry(store) -> HabitRegistry:
    return HabitRegistry(store)


@pytest.fixture()
def ledger(store) -> TrackingLedger:
    return TrackingLedger(store)


@pytest.fixture()
def aggregator(store, ledger) -> DailyScoreAggregator:
    return DailyScoreAggregator(store, ledger)


@pytest.fixture()
def trends(store, clock) -> TrendCalculator:
    return TrendCalculator(store, clock)


@pytest.fixture()
def override_store(store, clock):
    """Override the FastAPI dependencies so no real DB is needed."""
    async def _override():
        yield store

    app.dependency_overrides[get_store] = _override
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_provider] = lambda: None
    yield store
    app.dependency_overrides.clear()


@pytest.fixture()
async def client(override_store):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
