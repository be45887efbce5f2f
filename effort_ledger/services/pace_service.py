"""Weekly pace projection and behind-pace warnings.

Only WEEKLY/TIME tasks are projected. Everything is recomputed from the logs
on each call; nothing is cached between calls.
"""

import enum
import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

from effort_ledger.dates import day_of_week_index, iso_week_range
from effort_ledger.models.task import QuotaType, TaskType
from effort_ledger.services.progress_service import base_quota, window_total

logger = logging.getLogger(__name__)

DAYS_IN_WEEK = 7


class WarningSeverity(str, enum.Enum):
    none = "none"
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"

    @property
    def rank(self) -> int:
        """Higher is more severe."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    WarningSeverity.none: 0,
    WarningSeverity.low: 1,
    WarningSeverity.medium: 2,
    WarningSeverity.high: 3,
    WarningSeverity.critical: 4,
}


class WarningType(str, enum.Enum):
    behind_pace = "behind_pace"
    at_risk = "at_risk"
    critical = "critical"


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PaceProjection:
    task_id: int
    task_name: str
    progress: int
    quota: int
    current_pace: float  # minutes/day averaged over elapsed days
    required_pace: float  # minutes/day still needed; math.inf when out of days
    projected_completion: Optional[date]
    ideal_progress: float
    deficit: float
    deficit_ratio: float
    days_elapsed: int
    days_remaining: int
    severity: WarningSeverity

    def to_dict(self) -> dict:
        return {
            "task_id": self.task_id,
            "task_name": self.task_name,
            "progress": self.progress,
            "quota": self.quota,
            "current_pace": round(self.current_pace, 2),
            "required_pace": None if math.isinf(self.required_pace) else round(self.required_pace, 2),
            "projected_completion": (
                self.projected_completion.isoformat() if self.projected_completion else None
            ),
            "deficit": round(self.deficit, 2),
            "deficit_ratio": round(self.deficit_ratio, 4),
            "days_elapsed": self.days_elapsed,
            "days_remaining": self.days_remaining,
            "severity": self.severity.value,
        }


def is_projectable(task) -> bool:
    return QuotaType(task.quota_type) == QuotaType.weekly and TaskType(task.task_type) == TaskType.time


def classify_severity(
    progress: float, quota: float, days_remaining: int, deficit_ratio: float
) -> WarningSeverity:
    """First matching rule wins."""
    if progress >= quota:
        return WarningSeverity.none
    if deficit_ratio > 0.5 and days_remaining <= 1:
        return WarningSeverity.critical
    if (deficit_ratio > 0.4 and days_remaining <= 2) or deficit_ratio > 0.6:
        return WarningSeverity.high
    if (deficit_ratio > 0.25 and days_remaining <= 3) or deficit_ratio > 0.4:
        return WarningSeverity.medium
    if deficit_ratio > 0.15:
        return WarningSeverity.low
    return WarningSeverity.none


def calculate_pace_projection(task, logs: Iterable, current_date: date) -> Optional[PaceProjection]:
    """Project a weekly task's week. None for other task kinds or a zero quota."""
    if not is_projectable(task):
        return None
    quota = base_quota(task)
    if quota <= 0:
        return None

    start, end = iso_week_range(current_date)
    days_elapsed = day_of_week_index(current_date)
    days_remaining = DAYS_IN_WEEK - days_elapsed

    progress = window_total(task, logs, start, end)
    current_pace = progress / days_elapsed
    remaining = max(0, quota - progress)
    if days_remaining > 0:
        required_pace = remaining / days_remaining
    else:
        required_pace = math.inf if remaining > 0 else 0.0

    projected_completion: Optional[date] = None
    if remaining == 0:
        projected_completion = current_date
    elif current_pace > 0:
        days_to_complete = math.ceil(remaining / current_pace)
        if days_elapsed + days_to_complete <= DAYS_IN_WEEK:
            projected_completion = current_date + timedelta(days=days_to_complete - 1)

    ideal_progress = quota / DAYS_IN_WEEK * days_elapsed
    deficit = max(0.0, ideal_progress - progress)
    deficit_ratio = deficit / quota

    return PaceProjection(
        task_id=task.id,
        task_name=task.name,
        progress=progress,
        quota=quota,
        current_pace=current_pace,
        required_pace=required_pace,
        projected_completion=projected_completion,
        ideal_progress=ideal_progress,
        deficit=deficit,
        deficit_ratio=deficit_ratio,
        days_elapsed=days_elapsed,
        days_remaining=days_remaining,
        severity=classify_severity(progress, quota, days_remaining, deficit_ratio),
    )


# ---------------------------------------------------------------------------
# Warnings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TaskWarning:
    task_id: int
    task_name: str
    warning_type: WarningType
    severity: WarningSeverity
    message: str
    projection: PaceProjection

    def to_dict(self) -> dict:
        return {
            "task_id": self.task_id,
            "task_name": self.task_name,
            "warning_type": self.warning_type.value,
            "severity": self.severity.value,
            "message": self.message,
            "projection": self.projection.to_dict(),
        }


def _plural_days(n: int) -> str:
    return f"{n} day" if n == 1 else f"{n} days"


def get_task_warning(projection: PaceProjection) -> Optional[TaskWarning]:
    severity = projection.severity
    deficit = round(projection.deficit)
    if math.isinf(projection.required_pace):
        needed = "more time than is left"
    else:
        needed = f"{round(projection.required_pace)}m/day"

    if severity == WarningSeverity.critical:
        warning_type = WarningType.critical
        message = f"Critical: {deficit}m behind with {_plural_days(projection.days_remaining)} left"
    elif severity == WarningSeverity.high:
        warning_type = WarningType.at_risk
        message = f"At risk: need {needed} to hit quota"
    elif severity in (WarningSeverity.medium, WarningSeverity.low):
        warning_type = WarningType.behind_pace
        message = f"{deficit}m behind pace ({needed} needed)"
    else:
        return None

    return TaskWarning(
        task_id=projection.task_id,
        task_name=projection.task_name,
        warning_type=warning_type,
        severity=severity,
        message=message,
        projection=projection,
    )


def get_task_warnings(tasks: Iterable, logs: Iterable, current_date: date) -> list[TaskWarning]:
    """At most one warning per non-archived task, most severe first."""
    logs = list(logs)
    warnings: list[TaskWarning] = []
    for task in tasks:
        if task.is_archived:
            continue
        projection = calculate_pace_projection(task, logs, current_date)
        if projection is None:
            continue
        warning = get_task_warning(projection)
        if warning is not None:
            warnings.append(warning)

    warnings.sort(key=lambda w: w.severity.rank, reverse=True)
    if warnings:
        logger.debug("%d pace warning(s) on %s", len(warnings), current_date.isoformat())
    return warnings
