"""Read endpoints for progress, streaks, pace warnings and guidance."""

from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from effort_ledger.database import get_db
from effort_ledger.dates import today
from effort_ledger.schemas.progress import (
    RecommendationResponse,
    StreakStateResponse,
    TaskProgressResponse,
    TaskWarningResponse,
)
from effort_ledger.services import ledger_service
from effort_ledger.services.streak_service import StreakOutcome, StreakSnapshot

router = APIRouter(tags=["progress"])

DayParam = Annotated[Optional[date], Query(alias="date")]


def _streak_response(
    task_id: int, snapshot: StreakSnapshot, outcome: Optional[StreakOutcome] = None
) -> StreakStateResponse:
    return StreakStateResponse(
        task_id=task_id,
        current_streak=snapshot.current_streak,
        longest_streak=snapshot.longest_streak,
        last_completed_date=snapshot.last_completed_date,
        freezes_available=snapshot.freezes_available,
        freeze_used_dates=snapshot.freeze_used_dates,
        streak_start_date=snapshot.streak_start_date,
        outcome=outcome,
    )


@router.get("/progress", response_model=list[TaskProgressResponse])
async def get_all_progress(db: Annotated[AsyncSession, Depends(get_db)], day: DayParam = None):
    results = await ledger_service.get_all_task_progress(db, day or today())
    return [TaskProgressResponse.model_validate(p) for p in results]


@router.get("/progress/{task_id}", response_model=TaskProgressResponse)
async def get_progress(
    task_id: int, db: Annotated[AsyncSession, Depends(get_db)], day: DayParam = None
):
    progress = await ledger_service.get_task_progress(db, task_id, day or today())
    if progress is None:
        raise HTTPException(404, "Task not found")
    return TaskProgressResponse.model_validate(progress)


@router.get("/streaks")
async def export_streaks(db: Annotated[AsyncSession, Depends(get_db)]) -> dict[str, dict]:
    """Every persisted streak keyed by task id."""
    return await ledger_service.export_streaks(db)


@router.get("/streaks/{task_id}", response_model=StreakStateResponse)
async def get_streak(task_id: int, db: Annotated[AsyncSession, Depends(get_db)]):
    snapshot = await ledger_service.get_streak(db, task_id)
    if snapshot is None:
        raise HTTPException(404, "No streak recorded for this task")
    return _streak_response(task_id, snapshot)


@router.post("/streaks/{task_id}/refresh", response_model=StreakStateResponse)
async def refresh_streak(
    task_id: int, db: Annotated[AsyncSession, Depends(get_db)], day: DayParam = None
):
    transition = await ledger_service.update_streak(db, task_id, day or today())
    if transition is None:
        raise HTTPException(404, "Task not found")
    return _streak_response(task_id, transition.state, transition.outcome)


@router.get("/warnings", response_model=list[TaskWarningResponse])
async def get_warnings(db: Annotated[AsyncSession, Depends(get_db)], day: DayParam = None):
    warnings = await ledger_service.get_task_warnings(db, day or today())
    return [w.to_dict() for w in warnings]


@router.get("/recommendation", response_model=Optional[RecommendationResponse])
async def get_recommendation(db: Annotated[AsyncSession, Depends(get_db)], day: DayParam = None):
    recommendation = await ledger_service.get_recommendation(db, day or today())
    return recommendation.to_dict() if recommendation else None
