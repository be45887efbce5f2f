from typing import Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from effort_ledger.crud.base import CRUDBase
from effort_ledger.models.log_entry import LogEntry
from effort_ledger.models.streak_state import StreakState
from effort_ledger.models.task import Priority, Task
from effort_ledger.schemas.task import TaskCreate, TaskUpdate


class CRUDTask(CRUDBase[Task, TaskCreate, TaskUpdate]):
    async def get_all(self, db: AsyncSession) -> Sequence[Task]:
        """Every task, archived ones included."""
        result = await db.execute(select(Task).order_by(Task.id))
        return result.scalars().all()

    async def get_active(self, db: AsyncSession) -> Sequence[Task]:
        """All non-archived tasks."""
        result = await db.execute(
            select(Task).where(Task.is_archived == False).order_by(Task.id)  # noqa: E712
        )
        return result.scalars().all()

    async def get_by_priority(
        self, db: AsyncSession, priority: Priority, *, exclude_id: Optional[int] = None
    ) -> Sequence[Task]:
        """Non-archived tasks of one priority level, most important first."""
        stmt = select(Task).where(Task.priority == priority, Task.is_archived == False)  # noqa: E712
        if exclude_id is not None:
            stmt = stmt.where(Task.id != exclude_id)
        result = await db.execute(stmt.order_by(Task.priority_rank, Task.name))
        return result.scalars().all()

    async def remove(self, db: AsyncSession, *, id: int) -> Optional[Task]:
        """Delete a task together with its log entries and streak state."""
        task = await db.get(Task, id)
        if task is None:
            return None
        await db.execute(delete(LogEntry).where(LogEntry.task_id == id))
        await db.execute(delete(StreakState).where(StreakState.task_id == id))
        await db.delete(task)
        await db.flush()
        return task


crud_task = CRUDTask(Task)
