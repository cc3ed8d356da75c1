"""Daily tracking endpoints — instances, day totals and the journal note.

Every instance change re-persists the day's habit total, matching what the
dashboard shows as the running score.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from habitboard.auth import verify_api_key
from habitboard.config import settings
from habitboard.tracker.aggregator import DailyScoreAggregator
from habitboard.tracker.clock import Clock
from habitboard.tracker.deps import get_aggregator, get_clock, get_ledger
from habitboard.tracker.ledger import TrackingLedger
from habitboard.tracker.models import DailyScore, NoteResult, ScoreResult

router = APIRouter(tags=["tracking"])


class NoteBody(BaseModel):
    note: str | None = None


@router.get("/today")
async def today(
    clock: Clock = Depends(get_clock),
    _: str = Depends(verify_api_key),
) -> dict:
    return {"date": clock.now(), "timezone": clock.effective_timezone()}


# ---------------------------------------------------------------------------
# /tracking/{date}
# ---------------------------------------------------------------------------


@router.get("/tracking/{day}")
async def day_counts(
    day: str,
    ledger: TrackingLedger = Depends(get_ledger),
    _: str = Depends(verify_api_key),
) -> dict:
    counts = await ledger.count_by_date(day)
    return {
        "date": day,
        "counts": {str(habit_id): n for habit_id, n in counts.items()},
        "max_instances_per_day": ledger.max_instances_per_day,
    }


@router.post("/tracking/{day}/habits/{habit_id}", status_code=201)
async def add_instance(
    day: str,
    habit_id: int,
    aggregator: DailyScoreAggregator = Depends(get_aggregator),
    _: str = Depends(verify_api_key),
) -> dict:
    entry, score = await aggregator.add_and_recompute(habit_id, day)
    return {"entry": entry.model_dump(mode="json"), "score": score.model_dump(mode="json")}


@router.delete("/tracking/{day}/habits/{habit_id}")
async def remove_instance(
    day: str,
    habit_id: int,
    aggregator: DailyScoreAggregator = Depends(get_aggregator),
    _: str = Depends(verify_api_key),
) -> dict:
    removed, score = await aggregator.remove_and_recompute(habit_id, day)
    return {
        "removed": removed.model_dump(mode="json") if removed else None,
        "score": score.model_dump(mode="json"),
    }


@router.delete("/tracking/{day}")
async def clear_day(
    day: str,
    confirm: bool = Query(default=False, description="Must be true; clearing a day cannot be undone"),
    aggregator: DailyScoreAggregator = Depends(get_aggregator),
    _: str = Depends(verify_api_key),
) -> dict:
    if not confirm:
        raise HTTPException(status_code=409, detail="Clearing a day requires confirm=true")
    removed, score = await aggregator.clear_and_recompute(day)
    return {"removed": removed, "score": score.model_dump(mode="json")}


# ---------------------------------------------------------------------------
# /scores/{date}
# ---------------------------------------------------------------------------


@router.get("/scores/{day}", response_model=DailyScore)
async def get_score(
    day: str,
    aggregator: DailyScoreAggregator = Depends(get_aggregator),
    _: str = Depends(verify_api_key),
) -> DailyScore:
    score = await aggregator.get_daily_score(day)
    if score is None:
        raise HTTPException(status_code=404, detail=f"No score saved for {day}")
    return score


@router.post("/scores/{day}/finalize", response_model=ScoreResult)
async def finalize_day(
    day: str,
    aggregator: DailyScoreAggregator = Depends(get_aggregator),
    _: str = Depends(verify_api_key),
) -> ScoreResult:
    return await aggregator.compute_and_persist(day)


@router.put("/scores/{day}/note", response_model=NoteResult)
async def save_note(
    day: str,
    body: NoteBody,
    aggregator: DailyScoreAggregator = Depends(get_aggregator),
    _: str = Depends(verify_api_key),
) -> NoteResult:
    if body.note and len(body.note) > settings.note_max_chars:
        raise HTTPException(
            status_code=422,
            detail=f"Note exceeds {settings.note_max_chars} characters ({len(body.note)})",
        )
    return await aggregator.save_note(day, body.note)
