"""Time allocation across priority levels and the daily focus score.

The target split is 70/20/10 (CORE/IMPORTANT/OPTIONAL). Only TIME tasks
contribute; HABIT amounts are counts, not minutes. Pure functions over task
and log snapshots.
"""

import calendar
import enum
import datetime as dt
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from effort_ledger.dates import as_day, date_range, iso_week_range
from effort_ledger.models.task import Priority, TaskType

CORE_RANGE = (60, 80)
IMPORTANT_RANGE = (10, 30)
OPTIONAL_MAX = 20


class AllocationPeriod(str, enum.Enum):
    day = "day"
    week = "week"
    month = "month"


class FocusStatus(str, enum.Enum):
    excellent = "excellent"
    good = "good"
    fair = "fair"
    poor = "poor"


@dataclass(frozen=True)
class AllocationScore:
    period: AllocationPeriod
    date: dt.date
    core_percentage: int
    important_percentage: int
    optional_percentage: int
    is_balanced: bool
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "period": self.period.value,
            "date": self.date.isoformat(),
            "core_percentage": self.core_percentage,
            "important_percentage": self.important_percentage,
            "optional_percentage": self.optional_percentage,
            "is_balanced": self.is_balanced,
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class FocusScore:
    date: dt.date
    core_minutes: int
    important_minutes: int
    optional_minutes: int
    total_minutes: int
    focus_percentage: int
    status: FocusStatus

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "core_minutes": self.core_minutes,
            "important_minutes": self.important_minutes,
            "optional_minutes": self.optional_minutes,
            "total_minutes": self.total_minutes,
            "focus_percentage": self.focus_percentage,
            "status": self.status.value,
        }


def period_bounds(day: date, period: AllocationPeriod) -> tuple[date, date]:
    """Inclusive (start, end) of the day, ISO week or calendar month holding ``day``."""
    period = AllocationPeriod(period)
    if period == AllocationPeriod.week:
        return iso_week_range(day)
    if period == AllocationPeriod.month:
        last = calendar.monthrange(day.year, day.month)[1]
        return day.replace(day=1), day.replace(day=last)
    return day, day


def percentage(part: int, total: int) -> int:
    """``part`` as a whole percentage of ``total``, rounding halves up."""
    if total <= 0:
        return 0
    return (200 * part + total) // (2 * total)


def minutes_by_priority(tasks: Iterable, logs: Iterable, start: date, end: date) -> dict[Priority, int]:
    """Minutes logged against TIME tasks with start <= day <= end."""
    priorities = {
        t.id: Priority(t.priority) for t in tasks if TaskType(t.task_type) == TaskType.time
    }
    totals = {p: 0 for p in Priority}
    for entry in logs:
        priority = priorities.get(entry.task_id)
        if priority is None:
            continue
        day = as_day(entry.date)
        if day is None or day < start or day > end:
            continue
        totals[priority] += max(0, int(entry.amount or 0))
    return totals


def is_balanced(core: int, important: int, optional: int) -> bool:
    return (
        CORE_RANGE[0] <= core <= CORE_RANGE[1]
        and IMPORTANT_RANGE[0] <= important <= IMPORTANT_RANGE[1]
        and optional <= OPTIONAL_MAX
    )


def allocation_warnings(core: int, important: int, optional: int) -> list[str]:
    warnings = []
    if core < CORE_RANGE[0]:
        warnings.append(f"Low CORE focus ({core}%). You're spreading too thin. Target: 70%")
    if core > CORE_RANGE[1]:
        warnings.append(
            f"Very high CORE focus ({core}%). Consider investing in growth (IMPORTANT tasks)."
        )
    if important < IMPORTANT_RANGE[0]:
        warnings.append(
            f"Low IMPORTANT allocation ({important}%). Not investing enough in growth. Target: 20%"
        )
    if optional > OPTIONAL_MAX:
        warnings.append(
            f"Too much time on OPTIONAL tasks ({optional}%). "
            "Focus on your core priorities. Target: 10%"
        )
    if important > IMPORTANT_RANGE[1]:
        warnings.append(
            f"High IMPORTANT allocation ({important}%). Make sure you're not neglecting core work."
        )
    return warnings


def calculate_allocation(
    day: date, period: AllocationPeriod, tasks: Iterable, logs: Iterable
) -> AllocationScore:
    period = AllocationPeriod(period)
    start, end = period_bounds(day, period)
    totals = minutes_by_priority(tasks, logs, start, end)
    total = sum(totals.values())
    if total == 0:
        return AllocationScore(
            period=period,
            date=day,
            core_percentage=0,
            important_percentage=0,
            optional_percentage=0,
            is_balanced=False,
            warnings=["No time logged for this period"],
        )

    core = percentage(totals[Priority.core], total)
    important = percentage(totals[Priority.important], total)
    optional = percentage(totals[Priority.optional], total)
    return AllocationScore(
        period=period,
        date=day,
        core_percentage=core,
        important_percentage=important,
        optional_percentage=optional,
        is_balanced=is_balanced(core, important, optional),
        warnings=allocation_warnings(core, important, optional),
    )


def focus_status(focus_percentage: int) -> FocusStatus:
    if focus_percentage >= 70:
        return FocusStatus.excellent
    if focus_percentage >= 50:
        return FocusStatus.good
    if focus_percentage >= 30:
        return FocusStatus.fair
    return FocusStatus.poor


def calculate_focus_score(day: date, tasks: Iterable, logs: Iterable) -> FocusScore:
    """Share of the day's minutes spent on CORE tasks."""
    totals = minutes_by_priority(tasks, logs, day, day)
    total = sum(totals.values())
    focus = percentage(totals[Priority.core], total)
    return FocusScore(
        date=day,
        core_minutes=totals[Priority.core],
        important_minutes=totals[Priority.important],
        optional_minutes=totals[Priority.optional],
        total_minutes=total,
        focus_percentage=focus,
        status=focus_status(focus),
    )


def calculate_weekly_focus_average(day: date, tasks: Iterable, logs: Iterable) -> int:
    """Mean focus percentage over the days of ``day``'s ISO week that have minutes.

    Days with nothing logged are left out; a week with no minutes scores 0.
    """
    tasks, logs = list(tasks), list(logs)
    start, end = iso_week_range(day)
    scores = [
        score.focus_percentage
        for score in (calculate_focus_score(d, tasks, logs) for d in date_range(start, end))
        if score.total_minutes > 0
    ]
    if not scores:
        return 0
    return percentage(sum(scores), len(scores) * 100)
