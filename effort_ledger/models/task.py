import enum
from typing import Optional

from sqlalchemy import Boolean, Enum, Integer, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from effort_ledger.models.base import Base, TimestampMixin


class Priority(str, enum.Enum):
    core = "CORE"
    important = "IMPORTANT"
    optional = "OPTIONAL"

    @property
    def order(self) -> int:
        """Sort key: CORE first."""
        return _PRIORITY_ORDER[self]


_PRIORITY_ORDER = {Priority.core: 0, Priority.important: 1, Priority.optional: 2}


class QuotaType(str, enum.Enum):
    daily = "DAILY"
    weekly = "WEEKLY"
    days_per_week = "DAYS_PER_WEEK"


class TaskType(str, enum.Enum):
    time = "TIME"  # amounts are minutes
    habit = "HABIT"  # amounts are counts


class Task(Base, TimestampMixin):
    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    priority: Mapped[Priority] = mapped_column(
        Enum(Priority), nullable=False, default=Priority.important
    )
    quota_type: Mapped[QuotaType] = mapped_column(
        Enum(QuotaType), nullable=False, default=QuotaType.daily
    )
    task_type: Mapped[TaskType] = mapped_column(
        Enum(TaskType), nullable=False, default=TaskType.time
    )
    daily_quota_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    weekly_quota_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    weekly_days_target: Mapped[Optional[int]] = mapped_column(SmallInteger, nullable=True)  # 1-7
    habit_quota_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    habit_unit: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    allow_carryover: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # Lower rank = more important within the same priority level
    priority_rank: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    comparison_count: Mapped[Optional[int]] = mapped_column(SmallInteger, nullable=True)
