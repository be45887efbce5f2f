from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from effort_ledger.models.streak_state import StreakState
from effort_ledger.services.streak_service import StreakSnapshot


async def get(db: AsyncSession, task_id: int) -> Optional[StreakState]:
    return await db.get(StreakState, task_id)


async def get_all(db: AsyncSession) -> Sequence[StreakState]:
    result = await db.execute(select(StreakState).order_by(StreakState.task_id))
    return result.scalars().all()


async def save(db: AsyncSession, task_id: int, snapshot: StreakSnapshot) -> StreakState:
    """Insert or overwrite the persisted streak for a task."""
    row = await db.get(StreakState, task_id)
    if row is None:
        row = StreakState(task_id=task_id)
    data = snapshot.to_dict()
    row.current_streak = snapshot.current_streak
    row.longest_streak = snapshot.longest_streak
    row.last_completed_date = snapshot.last_completed_date
    row.freezes_available = snapshot.freezes_available
    row.freeze_used_dates = data["freeze_used_dates"]
    row.streak_start_date = snapshot.streak_start_date
    db.add(row)
    await db.flush()
    return row
