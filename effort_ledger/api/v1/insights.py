"""Read endpoints for time allocation, focus and personal records."""

from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from effort_ledger.database import get_db
from effort_ledger.dates import iso_week_range, today
from effort_ledger.schemas.insights import (
    AllocationResponse,
    AllTimeRecordsResponse,
    FocusScoreResponse,
    PersonalRecordResponse,
    WeeklyFocusResponse,
)
from effort_ledger.services import ledger_service
from effort_ledger.services.allocation_service import AllocationPeriod
from effort_ledger.services.records_service import get_next_milestone

router = APIRouter(tags=["insights"])

DayParam = Annotated[Optional[date], Query(alias="date")]


@router.get("/allocation", response_model=AllocationResponse)
async def get_allocation(
    db: Annotated[AsyncSession, Depends(get_db)],
    day: DayParam = None,
    period: AllocationPeriod = AllocationPeriod.week,
):
    score = await ledger_service.get_allocation(db, day or today(), period)
    return score.to_dict()


@router.get("/focus", response_model=FocusScoreResponse)
async def get_focus(db: Annotated[AsyncSession, Depends(get_db)], day: DayParam = None):
    score = await ledger_service.get_focus_score(db, day or today())
    return score.to_dict()


@router.get("/focus/weekly", response_model=WeeklyFocusResponse)
async def get_weekly_focus(db: Annotated[AsyncSession, Depends(get_db)], day: DayParam = None):
    day = day or today()
    average = await ledger_service.get_weekly_focus_average(db, day)
    return WeeklyFocusResponse(week_start=iso_week_range(day)[0], average_focus_percentage=average)


@router.get("/records", response_model=list[PersonalRecordResponse])
async def get_records(db: Annotated[AsyncSession, Depends(get_db)]):
    records = await ledger_service.get_personal_records(db)
    return [r.to_dict() for r in records]


@router.get("/records/all-time", response_model=AllTimeRecordsResponse)
async def get_all_time_records(db: Annotated[AsyncSession, Depends(get_db)]):
    records = await ledger_service.get_all_time_records(db)
    return {**records.to_dict(), "next_milestone": get_next_milestone(records.total_hours)}
