from effort_ledger.models.base import Base, TimestampMixin
from effort_ledger.models.task import Task, Priority, QuotaType, TaskType
from effort_ledger.models.log_entry import LogEntry, LogSource
from effort_ledger.models.streak_state import StreakState

__all__ = [
    "Base",
    "TimestampMixin",
    "Task",
    "Priority",
    "QuotaType",
    "TaskType",
    "LogEntry",
    "LogSource",
    "StreakState",
]
