import datetime as dt
from typing import Optional

from pydantic import BaseModel

from effort_ledger.services.allocation_service import AllocationPeriod, FocusStatus
from effort_ledger.services.records_service import RecordType


class AllocationResponse(BaseModel):
    period: AllocationPeriod
    date: dt.date
    core_percentage: int
    important_percentage: int
    optional_percentage: int
    is_balanced: bool
    warnings: list[str]


class FocusScoreResponse(BaseModel):
    date: dt.date
    core_minutes: int
    important_minutes: int
    optional_minutes: int
    total_minutes: int
    focus_percentage: int
    status: FocusStatus


class WeeklyFocusResponse(BaseModel):
    week_start: dt.date
    average_focus_percentage: int


class PersonalRecordResponse(BaseModel):
    type: RecordType
    value: int
    unit: str
    description: str
    date: Optional[dt.date] = None


class AllTimeRecordsResponse(BaseModel):
    longest_streak: int
    best_day_minutes: int
    best_day_date: Optional[dt.date]
    total_hours: int
    total_completions: int
    most_quotas_in_week: int
    most_quotas_week_start: Optional[dt.date]
    next_milestone: Optional[int]
