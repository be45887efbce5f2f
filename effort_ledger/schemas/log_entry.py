import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field

from effort_ledger.models.log_entry import LogSource


class LogEntryCreate(BaseModel):
    task_id: int
    # Minutes for TIME tasks, count for HABIT tasks (defaults to 1 for habits)
    amount: Optional[int] = Field(None, ge=0)
    source: LogSource = LogSource.manual
    date: Optional[dt.date] = None  # defaults to today
    note: Optional[str] = Field(None, max_length=200)


class UndoLastRequest(BaseModel):
    task_id: int
    date: Optional[dt.date] = None


class LogEntryResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    task_id: int
    date: dt.date
    amount: int
    source: LogSource
    note: Optional[str]
    created_at: dt.datetime


class UndoResult(BaseModel):
    undone: bool
