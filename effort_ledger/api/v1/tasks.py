"""Task endpoints, including interactive priority ranking."""

from typing import Annotated, Union

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from effort_ledger.crud import crud_task
from effort_ledger.database import get_db
from effort_ledger.schemas.ranking import ComparisonPrompt, RankRequest, RankResult
from effort_ledger.schemas.task import TaskCreate, TaskResponse, TaskUpdate
from effort_ledger.services import ledger_service
from effort_ledger.services.ranking_service import ComparisonRequest

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    db: Annotated[AsyncSession, Depends(get_db)],
    include_archived: bool = False,
):
    if include_archived:
        return await crud_task.get_multi(db, limit=1000)
    return await crud_task.get_active(db)


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(
    body: TaskCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    return await crud_task.create(db, obj_in=body)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task_id: int, db: Annotated[AsyncSession, Depends(get_db)]):
    task = await crud_task.get(db, task_id)
    if not task:
        raise HTTPException(404, "Task not found")
    return task


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    body: TaskUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    task = await crud_task.get(db, task_id)
    if not task:
        raise HTTPException(404, "Task not found")
    return await crud_task.update(db, db_obj=task, obj_in=body)


@router.post("/{task_id}/archive", response_model=TaskResponse)
async def archive_task(task_id: int, db: Annotated[AsyncSession, Depends(get_db)]):
    task = await crud_task.get(db, task_id)
    if not task:
        raise HTTPException(404, "Task not found")
    return await crud_task.update(db, db_obj=task, obj_in={"is_archived": True})


@router.post("/{task_id}/unarchive", response_model=TaskResponse)
async def unarchive_task(task_id: int, db: Annotated[AsyncSession, Depends(get_db)]):
    task = await crud_task.get(db, task_id)
    if not task:
        raise HTTPException(404, "Task not found")
    return await crud_task.update(db, db_obj=task, obj_in={"is_archived": False})


@router.delete("/{task_id}")
async def delete_task(task_id: int, db: Annotated[AsyncSession, Depends(get_db)]):
    if not await ledger_service.delete_task(db, task_id):
        raise HTTPException(404, "Task not found")
    return {"success": True}


@router.post("/{task_id}/rank", response_model=Union[ComparisonPrompt, RankResult])
async def rank_task(
    task_id: int,
    body: RankRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Submit the answers so far; get the next comparison or the final rank."""
    try:
        outcome = await ledger_service.rank_task(db, task_id, list(body.answers))
    except ValueError as e:
        raise HTTPException(422, str(e)) from e
    if outcome is None:
        raise HTTPException(404, "Task not found")

    if isinstance(outcome, ComparisonRequest):
        peers = await ledger_service.ranking_peer_count(db, task_id)
        return ComparisonPrompt(
            task_id=task_id,
            incumbent_id=outcome.incumbent.id,
            incumbent_name=outcome.incumbent.name,
            step=outcome.step,
            max_comparisons=peers.bit_length(),
        )

    result, rebalanced = outcome
    task = await crud_task.get(db, task_id)
    return RankResult(
        task_id=task_id,
        priority_rank=task.priority_rank,
        comparison_count=result.comparison_count,
        rebalanced=rebalanced,
        insertion_index=result.insertion_index,
    )


@router.post("/{task_id}/rank/skip", response_model=RankResult)
async def skip_ranking(task_id: int, db: Annotated[AsyncSession, Depends(get_db)]):
    """Abandon ranking and place the task after every ranked task."""
    outcome = await ledger_service.skip_ranking(db, task_id)
    if outcome is None:
        raise HTTPException(404, "Task not found")
    result, rebalanced = outcome
    task = await crud_task.get(db, task_id)
    return RankResult(
        task_id=task_id,
        priority_rank=task.priority_rank,
        comparison_count=0,
        skipped=True,
        rebalanced=rebalanced,
        insertion_index=result.insertion_index,
    )
