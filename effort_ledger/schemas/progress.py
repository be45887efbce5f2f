from datetime import date
from typing import Optional

from pydantic import BaseModel

from effort_ledger.models.task import Priority
from effort_ledger.schemas.task import TaskResponse
from effort_ledger.services.pace_service import WarningSeverity, WarningType
from effort_ledger.services.progress_service import ProgressUnit
from effort_ledger.services.streak_service import StreakOutcome


class TaskProgressResponse(BaseModel):
    model_config = {"from_attributes": True}

    task_id: int
    progress: int
    effective_quota: int
    remaining: int
    is_done: bool
    carryover_applied: int
    progress_unit: ProgressUnit
    base_quota: int
    days_completed_this_week: Optional[int] = None
    days_remaining_in_week: Optional[int] = None
    weekly_days_target: Optional[int] = None
    task: TaskResponse


class StreakStateResponse(BaseModel):
    task_id: int
    current_streak: int
    longest_streak: int
    last_completed_date: Optional[date]
    freezes_available: int
    freeze_used_dates: list[date]
    streak_start_date: Optional[date]
    outcome: Optional[StreakOutcome] = None


class PaceProjectionResponse(BaseModel):
    task_id: int
    task_name: str
    progress: int
    quota: int
    current_pace: float
    required_pace: Optional[float]  # None when the week has run out
    projected_completion: Optional[date]
    deficit: float
    deficit_ratio: float
    days_elapsed: int
    days_remaining: int
    severity: WarningSeverity


class TaskWarningResponse(BaseModel):
    task_id: int
    task_name: str
    warning_type: WarningType
    severity: WarningSeverity
    message: str
    projection: PaceProjectionResponse


class RecommendationResponse(BaseModel):
    task_id: int
    task_name: str
    reason: str
    urgency_score: int
    daily_target: int
    priority: Priority
    is_habit: bool
