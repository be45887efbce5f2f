"""Per-task, per-day quota accounting.

Pure functions over a task and a snapshot of its log entries. Nothing here
touches the database; callers load the logs and pass them in.
"""

import enum
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Iterable, Optional

from effort_ledger.dates import as_day, date_range, iso_week_range
from effort_ledger.models.task import QuotaType, TaskType


class ProgressUnit(str, enum.Enum):
    minutes = "minutes"
    count = "count"
    days = "days"


@dataclass(frozen=True)
class TaskProgress:
    task_id: int
    progress: int
    effective_quota: int
    remaining: int
    is_done: bool
    carryover_applied: int
    progress_unit: ProgressUnit
    base_quota: int
    # Only populated for DAYS_PER_WEEK tasks
    days_completed_this_week: Optional[int] = None
    days_remaining_in_week: Optional[int] = None
    weekly_days_target: Optional[int] = None
    task: Any = field(default=None, compare=False, repr=False)


def quota_type_of(task) -> QuotaType:
    return QuotaType(task.quota_type)


def is_habit(task) -> bool:
    return TaskType(task.task_type) == TaskType.habit


def base_quota(task) -> int:
    """The configured quota for the task's period, never negative."""
    quota_type = quota_type_of(task)
    if quota_type == QuotaType.days_per_week:
        value = task.weekly_days_target
    elif is_habit(task):
        value = task.habit_quota_count
    elif quota_type == QuotaType.weekly:
        value = task.weekly_quota_minutes
    else:
        value = task.daily_quota_minutes
    return max(0, int(value or 0))


def per_day_quota(task) -> int:
    """Amount a single day needs to count towards a DAYS_PER_WEEK target."""
    value = task.habit_quota_count if is_habit(task) else task.daily_quota_minutes
    return max(0, int(value or 0))


def _amount(entry) -> int:
    return max(0, int(entry.amount or 0))


def window_total(task, logs: Iterable, start: date, end: date) -> int:
    """Sum of the task's logged amounts with start <= day <= end."""
    total = 0
    for entry in logs:
        if entry.task_id != task.id:
            continue
        day = as_day(entry.date)
        if day is None or day < start or day > end:
            continue
        total += _amount(entry)
    return total


def day_total(task, logs: Iterable, day: date) -> int:
    return window_total(task, logs, day, day)


def _daily_progress(task, logs: list, day: date) -> TaskProgress:
    quota = base_quota(task)
    progress = day_total(task, logs, day)

    carryover_applied = 0
    if task.allow_carryover and not is_habit(task):
        yesterday_progress = day_total(task, logs, day - timedelta(days=1))
        overflow = max(0, yesterday_progress - quota)
        carryover_applied = min(overflow, quota)
    effective_quota = max(0, quota - carryover_applied)

    return TaskProgress(
        task_id=task.id,
        progress=progress,
        effective_quota=effective_quota,
        remaining=max(0, effective_quota - progress),
        is_done=progress >= effective_quota,
        carryover_applied=carryover_applied,
        progress_unit=ProgressUnit.count if is_habit(task) else ProgressUnit.minutes,
        base_quota=quota,
        task=task,
    )


def _weekly_progress(task, logs: list, day: date) -> TaskProgress:
    quota = base_quota(task)
    start, end = iso_week_range(day)
    progress = window_total(task, logs, start, end)
    return TaskProgress(
        task_id=task.id,
        progress=progress,
        effective_quota=quota,
        remaining=max(0, quota - progress),
        is_done=progress >= quota,
        carryover_applied=0,
        progress_unit=ProgressUnit.count if is_habit(task) else ProgressUnit.minutes,
        base_quota=quota,
        task=task,
    )


def completed_days_in_week(task, logs: list, day: date) -> list[date]:
    """Days of the ISO week containing ``day`` whose total meets the per-day quota.

    A day needs at least one logged unit to count, so a zero per-day quota
    does not mark untouched days as completed.
    """
    start, end = iso_week_range(day)
    threshold = per_day_quota(task)
    completed = []
    for current in date_range(start, end):
        total = day_total(task, logs, current)
        if total > 0 and total >= threshold:
            completed.append(current)
    return completed


def _days_per_week_progress(task, logs: list, day: date) -> TaskProgress:
    target = base_quota(task)
    _, end = iso_week_range(day)
    days_done = len(completed_days_in_week(task, logs, day))
    return TaskProgress(
        task_id=task.id,
        progress=days_done,
        effective_quota=target,
        remaining=max(0, target - days_done),
        is_done=days_done >= target,
        carryover_applied=0,
        progress_unit=ProgressUnit.days,
        base_quota=target,
        days_completed_this_week=days_done,
        days_remaining_in_week=(end - day).days + 1,
        weekly_days_target=target,
        task=task,
    )


def compute_progress(task, logs: Iterable, day: date) -> TaskProgress:
    """Completion state of ``task`` on ``day`` given a snapshot of logs."""
    logs = list(logs)
    quota_type = quota_type_of(task)
    if quota_type == QuotaType.days_per_week:
        return _days_per_week_progress(task, logs, day)
    if quota_type == QuotaType.weekly:
        return _weekly_progress(task, logs, day)
    return _daily_progress(task, logs, day)


def logs_window_for(day: date) -> tuple[date, date]:
    """Smallest inclusive date range ``compute_progress`` may read for ``day``."""
    start, end = iso_week_range(day)
    return min(start, day - timedelta(days=1)), end
