"""Habit definitions — CRUD and the color palette."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from habitboard.auth import verify_api_key
from habitboard.tracker.deps import get_registry
from habitboard.tracker.models import Habit
from habitboard.tracker.palette import list_colors
from habitboard.tracker.registry import HabitRegistry

router = APIRouter(prefix="/habits", tags=["habits"])


class HabitCreate(BaseModel):
    name: str
    color_tag: str
    impact: int | None = None
    difficulty: int | None = None
    time_effort: int | None = None
    priority_score: int | None = None  # Used only when no ratings are given


class HabitUpdate(BaseModel):
    name: str | None = None
    priority_score: int | None = None
    color_tag: str | None = None


@router.get("", response_model=list[Habit])
async def list_habits(
    registry: HabitRegistry = Depends(get_registry),
    _: str = Depends(verify_api_key),
) -> list[Habit]:
    return await registry.list()


@router.get("/palette")
async def palette(
    _: str = Depends(verify_api_key),
) -> list[dict]:
    return [{"hex": c.hex, "name": c.name} for c in list_colors()]


@router.post("", response_model=Habit, status_code=201)
async def create_habit(
    body: HabitCreate,
    registry: HabitRegistry = Depends(get_registry),
    _: str = Depends(verify_api_key),
) -> Habit:
    ratings = (body.impact, body.difficulty, body.time_effort)
    if any(r is not None for r in ratings):
        return await registry.create(body.name, body.impact, body.difficulty, body.time_effort, body.color_tag)
    if body.priority_score is not None:
        return await registry.create_with_score(body.name, body.priority_score, body.color_tag)
    raise HTTPException(
        status_code=422,
        detail="Provide impact, difficulty and time_effort (1-5), or a priority_score",
    )


@router.get("/{habit_id}", response_model=Habit)
async def get_habit(
    habit_id: int,
    registry: HabitRegistry = Depends(get_registry),
    _: str = Depends(verify_api_key),
) -> Habit:
    return await registry.get(habit_id)


@router.patch("/{habit_id}", response_model=Habit)
async def update_habit(
    habit_id: int,
    body: HabitUpdate,
    registry: HabitRegistry = Depends(get_registry),
    _: str = Depends(verify_api_key),
) -> Habit:
    return await registry.update(
        habit_id,
        name=body.name,
        priority_score=body.priority_score,
        color_tag=body.color_tag,
    )


@router.post("/{habit_id}/deactivate", response_model=Habit)
async def deactivate_habit(
    habit_id: int,
    registry: HabitRegistry = Depends(get_registry),
    _: str = Depends(verify_api_key),
) -> Habit:
    return await registry.deactivate(habit_id)
