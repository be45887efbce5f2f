from datetime import date
from typing import Optional

from sqlalchemy import JSON, Date, ForeignKey, Integer, SmallInteger
from sqlalchemy.orm import Mapped, mapped_column

from effort_ledger.models.base import Base, TimestampMixin


class StreakState(Base, TimestampMixin):
    __tablename__ = "streak_states"

    task_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True
    )
    current_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_completed_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    freezes_available: Mapped[int] = mapped_column(SmallInteger, default=0, nullable=False)  # 0-2
    freeze_used_dates: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    streak_start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
