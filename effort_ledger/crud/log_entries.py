from datetime import date
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from effort_ledger.crud.base import CRUDBase
from effort_ledger.dates import DayLike, as_day
from effort_ledger.models.log_entry import LogEntry
from effort_ledger.schemas.log_entry import LogEntryCreate


class CRUDLogEntry(CRUDBase[LogEntry, LogEntryCreate, LogEntryCreate]):
    async def append(self, db: AsyncSession, entry: LogEntry) -> LogEntry:
        db.add(entry)
        await db.flush()
        await db.refresh(entry)
        return entry

    async def remove_by_id(self, db: AsyncSession, log_id: int) -> bool:
        removed = await self.remove(db, id=log_id)
        return removed is not None

    async def query_by_task_and_date_range(
        self,
        db: AsyncSession,
        task_id: int,
        start: Optional[DayLike] = None,
        end: Optional[DayLike] = None,
    ) -> Sequence[LogEntry]:
        """Entries of one task with start <= date <= end (both inclusive).

        ``None`` leaves that side open. A malformed bound or an inverted range
        yields no entries.
        """
        start_day = as_day(start) if start is not None else date.min
        end_day = as_day(end) if end is not None else date.max
        if start_day is None or end_day is None or start_day > end_day:
            return []
        result = await db.execute(
            select(LogEntry)
            .where(
                LogEntry.task_id == task_id,
                LogEntry.date >= start_day,
                LogEntry.date <= end_day,
            )
            .order_by(LogEntry.date, LogEntry.id)
        )
        return result.scalars().all()

    async def query_by_date_range(
        self, db: AsyncSession, start: DayLike, end: DayLike
    ) -> Sequence[LogEntry]:
        """Entries of every task within an inclusive date range."""
        start_day, end_day = as_day(start), as_day(end)
        if start_day is None or end_day is None or start_day > end_day:
            return []
        result = await db.execute(
            select(LogEntry)
            .where(LogEntry.date >= start_day, LogEntry.date <= end_day)
            .order_by(LogEntry.date, LogEntry.id)
        )
        return result.scalars().all()

    async def query_all(self, db: AsyncSession) -> Sequence[LogEntry]:
        result = await db.execute(select(LogEntry).order_by(LogEntry.date, LogEntry.id))
        return result.scalars().all()

    async def get_latest_for_task_and_date(
        self, db: AsyncSession, task_id: int, day: date
    ) -> Optional[LogEntry]:
        result = await db.execute(
            select(LogEntry)
            .where(LogEntry.task_id == task_id, LogEntry.date == day)
            .order_by(LogEntry.created_at.desc(), LogEntry.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()


crud_log_entry = CRUDLogEntry(LogEntry)
