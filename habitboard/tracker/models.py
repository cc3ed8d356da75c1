"""Tracking records — Pydantic v2 models.

Rows coming back from the store are validated through these models, so a
malformed row fails at the boundary instead of leaking into the scoring math.
"""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field, computed_field


class Habit(BaseModel):
    id: int
    name: str = Field(min_length=1)
    priority_score: int = Field(ge=0)
    color_tag: str
    active: bool = True


class TrackingEntry(BaseModel):
    id: int
    habit_id: int
    date: dt.date
    completed: bool = True  # Only completed entries are ever written


class TrackedInstance(TrackingEntry):
    """A tracking entry joined with the habit snapshot at read time."""

    habit_name: str
    priority_score: int = Field(ge=0)


class DailyScore(BaseModel):
    date: dt.date
    habit_score_total: int = 0
    daily_note: str | None = None
    note_points: int = Field(default=0, ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_score(self) -> int:
        return self.habit_score_total + self.note_points


class ScoreResult(BaseModel):
    date: dt.date
    habit_score_total: int
    note_points: int
    total_score: int


class NoteResult(BaseModel):
    date: dt.date
    note_points: int
    total_characters: int


class SeriesPoint(BaseModel):
    date: dt.date
    total_score: int = 0


class HabitSeriesPoint(BaseModel):
    date: dt.date
    count: int = 0
    score_if_completed: int = 0


class HabitSeries(BaseModel):
    habit_id: int
    points: list[HabitSeriesPoint] = Field(default_factory=list)
    days_completed: int = 0
    completion_pct: float = 0.0  # 0–100


class StreakSummary(BaseModel):
    habit_id: int
    habit_name: str
    streak: int = 0


class Conversation(BaseModel):
    id: int | None = None
    session_id: str
    user_id: str = "anonymous"
    message: str
    response: str
    tokens_used: int = 0
    model_used: str | None = None
    created_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))
