"""Daily targets and the "work on next" recommendation."""

import math
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from effort_ledger.dates import iso_week_range
from effort_ledger.models.task import Priority, QuotaType
from effort_ledger.services.pace_service import TaskWarning, WarningSeverity, is_projectable
from effort_ledger.services.progress_service import (
    ProgressUnit,
    TaskProgress,
    is_habit,
    per_day_quota,
)

PRIORITY_WEIGHTS = {
    Priority.core: 3,
    Priority.important: 2,
    Priority.optional: 1,
}

SEVERITY_WEIGHTS = {
    WarningSeverity.none: 0,
    WarningSeverity.low: 10,
    WarningSeverity.medium: 20,
    WarningSeverity.high: 30,
    WarningSeverity.critical: 40,
}

NEARLY_DONE_BONUS = 5


@dataclass(frozen=True)
class TaskRecommendation:
    task_id: int
    task_name: str
    reason: str
    urgency_score: int  # 0-100
    daily_target: int
    priority: Priority
    is_habit: bool

    def to_dict(self) -> dict:
        return {
            "task_id": self.task_id,
            "task_name": self.task_name,
            "reason": self.reason,
            "urgency_score": self.urgency_score,
            "daily_target": self.daily_target,
            "priority": self.priority.value,
            "is_habit": self.is_habit,
        }


def calculate_daily_target(task, progress: TaskProgress, current_date: date) -> int:
    """How much to do today to stay on track."""
    if progress.is_done:
        return 0

    quota_type = QuotaType(task.quota_type)
    if quota_type == QuotaType.days_per_week:
        return per_day_quota(task)
    if quota_type == QuotaType.daily:
        return progress.remaining
    if is_projectable(task):
        _, end = iso_week_range(current_date)
        days_left = (end - current_date).days + 1
        return math.ceil(progress.remaining / days_left)
    if is_habit(task):
        return 1
    return progress.remaining


def calculate_urgency_score(progress: TaskProgress, warning: Optional[TaskWarning] = None) -> int:
    score = PRIORITY_WEIGHTS[Priority(progress.task.priority)] * 10.0

    if progress.effective_quota > 0:
        score += progress.remaining / progress.effective_quota * 30
        completion_ratio = progress.progress / progress.effective_quota
        if 0.7 <= completion_ratio < 1:
            score += NEARLY_DONE_BONUS

    if warning is not None:
        score += SEVERITY_WEIGHTS[warning.severity]

    return min(100, round(score))


def describe_reason(progress: TaskProgress, warning: Optional[TaskWarning] = None) -> str:
    if progress.is_done:
        return "Completed for today"

    if warning is not None and warning.severity.rank >= WarningSeverity.medium.rank:
        return warning.message

    if Priority(progress.task.priority) == Priority.core:
        if progress.progress == 0:
            return "Core task - not started yet"
        unit = "min" if progress.progress_unit == ProgressUnit.minutes else progress.progress_unit.value
        return f"Core task - {progress.remaining} {unit} remaining"

    if warning is not None and warning.severity == WarningSeverity.low:
        return "Slightly behind pace"

    if progress.progress == 0:
        return "Not started today"

    percent = round(progress.progress / progress.effective_quota * 100)
    return f"{percent}% complete"


def get_task_recommendation(
    all_progress: Iterable[TaskProgress],
    warnings: Iterable[TaskWarning],
    current_date: date,
) -> Optional[TaskRecommendation]:
    """Pick the most urgent incomplete task, or None when everything is done."""
    incomplete = [p for p in all_progress if not p.is_done]
    if not incomplete:
        return None

    warnings_by_task = {w.task_id: w for w in warnings}
    scored = [
        (calculate_urgency_score(p, warnings_by_task.get(p.task_id)), index, p)
        for index, p in enumerate(incomplete)
    ]
    # Highest score wins; earlier input order breaks ties
    score, _, top = max(scored, key=lambda item: (item[0], -item[1]))
    warning = warnings_by_task.get(top.task_id)

    return TaskRecommendation(
        task_id=top.task_id,
        task_name=top.task.name,
        reason=describe_reason(top, warning),
        urgency_score=score,
        daily_target=calculate_daily_target(top.task, top, current_date),
        priority=Priority(top.task.priority),
        is_habit=is_habit(top.task),
    )
