import enum
import datetime as dt
from typing import Optional

from sqlalchemy import Date, Enum, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from effort_ledger.models.base import Base, TimestampMixin


class LogSource(str, enum.Enum):
    quick_add = "QUICK_ADD"
    timer = "TIMER"
    pomodoro = "POMODORO"
    manual = "MANUAL"


class LogEntry(Base, TimestampMixin):
    __tablename__ = "log_entries"
    __table_args__ = (Index("ix_log_entries_task_date", "task_id", "date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    task_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)  # user-local calendar day
    amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    source: Mapped[LogSource] = mapped_column(
        Enum(LogSource), nullable=False, default=LogSource.manual
    )
    note: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
