"""Personal records and all-time totals.

Pure functions over every task and log entry ever recorded. TIME amounts are
minutes and HABIT amounts are completions; the two are never mixed.
"""

import enum
import datetime as dt
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from effort_ledger.dates import as_day, date_range, iso_week_range
from effort_ledger.models.task import TaskType
from effort_ledger.services.streak_service import is_week_granular, period_completed

MILESTONE_HOURS = (10, 50, 100, 250, 500, 1000, 2500, 5000)


class RecordType(str, enum.Enum):
    longest_streak = "longest_streak"
    best_day = "best_day"
    weekly_champion = "weekly_champion"
    milestone = "milestone"


@dataclass(frozen=True)
class PersonalRecord:
    type: RecordType
    value: int
    unit: str
    description: str
    date: Optional[dt.date] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "value": self.value,
            "unit": self.unit,
            "description": self.description,
            "date": self.date.isoformat() if self.date else None,
        }


@dataclass(frozen=True)
class AllTimeRecords:
    longest_streak: int
    best_day_minutes: int
    best_day_date: Optional[date]
    total_hours: int
    total_completions: int
    most_quotas_in_week: int
    most_quotas_week_start: Optional[date]

    def to_dict(self) -> dict:
        return {
            "longest_streak": self.longest_streak,
            "best_day_minutes": self.best_day_minutes,
            "best_day_date": self.best_day_date.isoformat() if self.best_day_date else None,
            "total_hours": self.total_hours,
            "total_completions": self.total_completions,
            "most_quotas_in_week": self.most_quotas_in_week,
            "most_quotas_week_start": (
                self.most_quotas_week_start.isoformat() if self.most_quotas_week_start else None
            ),
        }


def _ids_of_type(tasks: Iterable, task_type: TaskType) -> set[int]:
    return {t.id for t in tasks if TaskType(t.task_type) == task_type}


def _amount(entry) -> int:
    return max(0, int(entry.amount or 0))


def find_best_day(tasks: Iterable, logs: Iterable) -> tuple[int, Optional[date]]:
    """(minutes, day) of the day with the most TIME minutes; earliest day wins ties."""
    time_ids = _ids_of_type(tasks, TaskType.time)
    per_day: dict[date, int] = {}
    for entry in logs:
        day = as_day(entry.date)
        if entry.task_id not in time_ids or day is None:
            continue
        per_day[day] = per_day.get(day, 0) + _amount(entry)

    best_minutes, best_day = 0, None
    for day in sorted(per_day):
        if per_day[day] > best_minutes:
            best_minutes, best_day = per_day[day], day
    return best_minutes, best_day


def calculate_total_hours(tasks: Iterable, logs: Iterable) -> int:
    """Whole hours logged against TIME tasks, rounding half an hour up."""
    time_ids = _ids_of_type(tasks, TaskType.time)
    minutes = sum(_amount(entry) for entry in logs if entry.task_id in time_ids)
    return (2 * minutes + 60) // 120


def calculate_total_completions(tasks: Iterable, logs: Iterable) -> int:
    habit_ids = _ids_of_type(tasks, TaskType.habit)
    return sum(_amount(entry) for entry in logs if entry.task_id in habit_ids)


def quotas_hit_in_week(tasks: Iterable, logs: list, week_start: date) -> int:
    """Quotas met during one ISO week.

    A DAILY task scores once per completed day; WEEKLY and DAYS_PER_WEEK
    tasks score once when the week itself is completed.
    """
    start, end = iso_week_range(week_start)
    hits = 0
    for task in tasks:
        task_logs = [entry for entry in logs if entry.task_id == task.id]
        if not task_logs:
            continue
        if is_week_granular(task):
            hits += int(period_completed(task, task_logs, end))
        else:
            hits += sum(1 for day in date_range(start, end) if period_completed(task, task_logs, day))
    return hits


def find_best_week(tasks: Iterable, logs: Iterable) -> tuple[int, Optional[date]]:
    """(quotas hit, monday) of the ISO week with the most quotas met.

    Only weeks with at least one entry are considered; the earliest week wins
    ties.
    """
    tasks, logs = list(tasks), list(logs)
    weeks = sorted({iso_week_range(day)[0] for day in (as_day(e.date) for e in logs) if day})

    best_count, best_week = 0, None
    for monday in weeks:
        count = quotas_hit_in_week(tasks, logs, monday)
        if count > best_count:
            best_count, best_week = count, monday
    return best_count, best_week


def get_milestones(total_hours: int) -> list[int]:
    """Every milestone already reached, smallest first."""
    return [m for m in MILESTONE_HOURS if total_hours >= m]


def get_next_milestone(total_hours: int) -> Optional[int]:
    return next((m for m in MILESTONE_HOURS if m > total_hours), None)


def _describe_minutes(minutes: int) -> str:
    hours, mins = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {mins}m in one day"
    return f"{mins}m in one day"


def get_personal_records(
    tasks: Iterable, logs: Iterable, longest_streak: int
) -> list[PersonalRecord]:
    """Records worth showing; categories with nothing achieved are left out."""
    tasks, logs = list(tasks), list(logs)
    records = []

    if longest_streak > 0:
        records.append(
            PersonalRecord(
                type=RecordType.longest_streak,
                value=longest_streak,
                unit="days",
                description=f"{longest_streak} day streak",
            )
        )

    best_minutes, best_day = find_best_day(tasks, logs)
    if best_minutes > 0:
        records.append(
            PersonalRecord(
                type=RecordType.best_day,
                value=best_minutes,
                unit="minutes",
                description=_describe_minutes(best_minutes),
                date=best_day,
            )
        )

    best_count, best_week = find_best_week(tasks, logs)
    if best_count > 0:
        records.append(
            PersonalRecord(
                type=RecordType.weekly_champion,
                value=best_count,
                unit="quotas",
                description=f"{best_count} quotas hit in one week",
                date=best_week,
            )
        )

    milestones = get_milestones(calculate_total_hours(tasks, logs))
    if milestones:
        records.append(
            PersonalRecord(
                type=RecordType.milestone,
                value=milestones[-1],
                unit="hours",
                description=f"{milestones[-1]} total hours",
            )
        )
    return records


def calculate_all_time_records(tasks: Iterable, logs: Iterable, longest_streak: int) -> AllTimeRecords:
    tasks, logs = list(tasks), list(logs)
    best_minutes, best_day = find_best_day(tasks, logs)
    best_count, best_week = find_best_week(tasks, logs)
    return AllTimeRecords(
        longest_streak=longest_streak,
        best_day_minutes=best_minutes,
        best_day_date=best_day,
        total_hours=calculate_total_hours(tasks, logs),
        total_completions=calculate_total_completions(tasks, logs),
        most_quotas_in_week=best_count,
        most_quotas_week_start=best_week,
    )
