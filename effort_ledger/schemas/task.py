from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from effort_ledger.models.task import Priority, QuotaType, TaskType


class TaskBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    priority: Priority = Priority.important
    quota_type: QuotaType = QuotaType.daily
    task_type: TaskType = TaskType.time
    daily_quota_minutes: Optional[int] = Field(None, ge=0)
    weekly_quota_minutes: Optional[int] = Field(None, ge=0)
    weekly_days_target: Optional[int] = Field(None, ge=1, le=7)
    habit_quota_count: Optional[int] = Field(None, ge=0)
    habit_unit: Optional[str] = Field(None, max_length=30)
    allow_carryover: bool = False


class TaskCreate(TaskBase):
    @model_validator(mode="after")
    def check_quota_fields(self) -> "TaskCreate":
        if self.task_type == TaskType.habit:
            if self.habit_quota_count is None:
                raise ValueError("habit_quota_count is required for HABIT tasks")
        elif self.quota_type == QuotaType.daily and self.daily_quota_minutes is None:
            raise ValueError("daily_quota_minutes is required for DAILY TIME tasks")
        elif self.quota_type == QuotaType.weekly and self.weekly_quota_minutes is None:
            raise ValueError("weekly_quota_minutes is required for WEEKLY TIME tasks")
        elif self.quota_type == QuotaType.days_per_week and self.daily_quota_minutes is None:
            raise ValueError("daily_quota_minutes is required for DAYS_PER_WEEK TIME tasks")
        if self.quota_type == QuotaType.days_per_week and self.weekly_days_target is None:
            raise ValueError("weekly_days_target is required for DAYS_PER_WEEK tasks")
        return self


class TaskUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    priority: Optional[Priority] = None
    daily_quota_minutes: Optional[int] = Field(None, ge=0)
    weekly_quota_minutes: Optional[int] = Field(None, ge=0)
    weekly_days_target: Optional[int] = Field(None, ge=1, le=7)
    habit_quota_count: Optional[int] = Field(None, ge=0)
    habit_unit: Optional[str] = Field(None, max_length=30)
    allow_carryover: Optional[bool] = None
    is_archived: Optional[bool] = None


class TaskResponse(TaskBase):
    model_config = {"from_attributes": True}

    id: int
    is_archived: bool
    priority_rank: Optional[int]
    comparison_count: Optional[int]
    created_at: datetime
