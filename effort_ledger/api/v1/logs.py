"""Effort log endpoints: append, query and time-bounded undo."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from effort_ledger.crud import crud_log_entry
from effort_ledger.database import get_db
from effort_ledger.dates import today
from effort_ledger.schemas.log_entry import (
    LogEntryCreate,
    LogEntryResponse,
    UndoLastRequest,
    UndoResult,
)
from effort_ledger.services import ledger_service

router = APIRouter(prefix="/logs", tags=["logs"])


@router.post("", response_model=LogEntryResponse, status_code=201)
async def create_log(
    body: LogEntryCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    try:
        entry = await ledger_service.log_effort(
            db,
            task_id=body.task_id,
            amount=body.amount,
            day=body.date or today(),
            source=body.source,
            note=body.note,
        )
    except ValueError as e:
        raise HTTPException(422, str(e)) from e
    if entry is None:
        raise HTTPException(404, "Task not found")
    return entry


@router.get("", response_model=list[LogEntryResponse])
async def list_logs(
    task_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    start: Optional[str] = None,
    end: Optional[str] = None,
):
    """Entries for a task in an inclusive date range; bad ranges give []."""
    return await crud_log_entry.query_by_task_and_date_range(db, task_id, start, end)


@router.delete("/{log_id}", response_model=UndoResult)
async def undo_log(log_id: int, db: Annotated[AsyncSession, Depends(get_db)]):
    return UndoResult(undone=await ledger_service.undo_log(db, log_id))


@router.post("/undo-last", response_model=UndoResult)
async def undo_last_log(
    body: UndoLastRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    undone = await ledger_service.undo_last_log(db, body.task_id, body.date or today())
    return UndoResult(undone=undone)
