"""Forgiving streak logic.

Daily tasks keep a streak of consecutive completed days. A single missed day
can be bridged by a freeze; freezes are earned every 7 streak days and at
most 2 can be banked. Weekly and days-per-week tasks keep a streak of
consecutive completed ISO weeks with no freezes.
"""

import enum
import logging
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Iterable, NamedTuple, Optional

from effort_ledger.dates import as_day, date_range, iso_week_range
from effort_ledger.models.task import QuotaType
from effort_ledger.services.progress_service import base_quota, compute_progress, quota_type_of

logger = logging.getLogger(__name__)

MAX_FREEZES = 2
DAYS_PER_FREEZE = 7
FREEZE_HISTORY_LIMIT = 5


class StreakOutcome(str, enum.Enum):
    continued = "continued"
    bridged_by_freeze = "bridged_by_freeze"
    reset = "reset"
    unchanged = "unchanged"
    broken = "broken"


@dataclass
class StreakSnapshot:
    current_streak: int = 0
    longest_streak: int = 0
    last_completed_date: Optional[date] = None
    freezes_available: int = 0
    freeze_used_dates: list[date] = field(default_factory=list)
    streak_start_date: Optional[date] = None

    def copy(self) -> "StreakSnapshot":
        return replace(self, freeze_used_dates=list(self.freeze_used_dates))

    def to_dict(self) -> dict:
        """Serialise to integers and ISO date strings only."""
        return {
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "last_completed_date": _iso(self.last_completed_date),
            "freezes_available": self.freezes_available,
            "freeze_used_dates": [d.isoformat() for d in self.freeze_used_dates],
            "streak_start_date": _iso(self.streak_start_date),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StreakSnapshot":
        freezes = int(data.get("freezes_available") or 0)
        return cls(
            current_streak=max(0, int(data.get("current_streak") or 0)),
            longest_streak=max(0, int(data.get("longest_streak") or 0)),
            last_completed_date=as_day(data.get("last_completed_date") or None),
            freezes_available=min(MAX_FREEZES, max(0, freezes)),
            freeze_used_dates=[
                d for d in (as_day(v) for v in data.get("freeze_used_dates") or []) if d
            ],
            streak_start_date=as_day(data.get("streak_start_date") or None),
        )

    @classmethod
    def from_model(cls, row) -> "StreakSnapshot":
        """Build from a persisted StreakState row."""
        return cls.from_dict(
            {
                "current_streak": row.current_streak,
                "longest_streak": row.longest_streak,
                "last_completed_date": row.last_completed_date,
                "freezes_available": row.freezes_available,
                "freeze_used_dates": row.freeze_used_dates,
                "streak_start_date": row.streak_start_date,
            }
        )


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


class StreakTransition(NamedTuple):
    outcome: StreakOutcome
    state: StreakSnapshot


def _finish_completion(state: StreakSnapshot, today: date, award_freezes: bool) -> None:
    state.last_completed_date = today
    if state.current_streak > state.longest_streak:
        state.longest_streak = state.current_streak
    if (
        award_freezes
        and state.current_streak % DAYS_PER_FREEZE == 0
        and state.freezes_available < MAX_FREEZES
    ):
        state.freezes_available += 1


def compute_transition(
    today: date, completed_today: bool, prior: StreakSnapshot
) -> StreakTransition:
    """Advance a daily streak to ``today``. ``prior`` is never mutated."""
    state = prior.copy()
    last = state.last_completed_date
    yesterday = today - timedelta(days=1)

    # Days at or before the last completion are already accounted for
    if last is not None and today <= last:
        return StreakTransition(StreakOutcome.unchanged, state)

    if completed_today:
        if last == yesterday:
            state.current_streak += 1
            outcome = StreakOutcome.continued
        elif (
            last == today - timedelta(days=2)
            and state.freezes_available > 0
            and state.current_streak > 0
        ):
            state.freezes_available -= 1
            state.freeze_used_dates = (state.freeze_used_dates + [yesterday])[
                -FREEZE_HISTORY_LIMIT:
            ]
            state.current_streak += 1
            outcome = StreakOutcome.bridged_by_freeze
        else:
            state.current_streak = 1
            state.streak_start_date = today
            outcome = StreakOutcome.reset
        _finish_completion(state, today, award_freezes=True)
        return StreakTransition(outcome, state)

    if last is None or last == yesterday:
        return StreakTransition(StreakOutcome.unchanged, state)
    if state.current_streak == 0:
        return StreakTransition(StreakOutcome.unchanged, state)

    gap = (today - last).days
    if gap == 2 and state.freezes_available > 0:
        # Yesterday can still be bridged if today gets completed
        return StreakTransition(StreakOutcome.unchanged, state)

    state.current_streak = 0
    state.streak_start_date = None
    return StreakTransition(StreakOutcome.broken, state)


def compute_weekly_transition(
    today: date, completed_this_week: bool, prior: StreakSnapshot
) -> StreakTransition:
    """Advance a week-granular streak; increments at most once per ISO week."""
    state = prior.copy()
    last = state.last_completed_date
    week_start, _ = iso_week_range(today)
    previous_week_start = week_start - timedelta(days=7)

    if last is not None and last >= week_start:
        return StreakTransition(StreakOutcome.unchanged, state)

    if completed_this_week:
        if last is not None and last >= previous_week_start and state.current_streak > 0:
            state.current_streak += 1
            outcome = StreakOutcome.continued
        else:
            state.current_streak = 1
            state.streak_start_date = week_start
            outcome = StreakOutcome.reset
        _finish_completion(state, today, award_freezes=False)
        return StreakTransition(outcome, state)

    if last is None or last >= previous_week_start or state.current_streak == 0:
        return StreakTransition(StreakOutcome.unchanged, state)

    state.current_streak = 0
    state.streak_start_date = None
    return StreakTransition(StreakOutcome.broken, state)


def is_week_granular(task) -> bool:
    return quota_type_of(task) in (QuotaType.weekly, QuotaType.days_per_week)


def period_completed(task, logs: list, day: date) -> bool:
    """Whether the period (day or ISO week) containing ``day`` met its quota.

    Zero-quota tasks never complete a period, so they never build a streak.
    """
    if base_quota(task) <= 0:
        return False
    return compute_progress(task, logs, day).is_done


def _step(task, logs: list, day: date, state: StreakSnapshot) -> StreakTransition:
    completed = period_completed(task, logs, day)
    if is_week_granular(task):
        return compute_weekly_transition(day, completed, state)
    return compute_transition(day, completed, state)


def _replay(task, logs: list, start: date, end: date, state: StreakSnapshot) -> StreakTransition:
    transition = StreakTransition(StreakOutcome.unchanged, state)
    final_outcome = StreakOutcome.unchanged
    for day in date_range(start, end):
        transition = _step(task, logs, day, transition.state)
        if transition.outcome != StreakOutcome.unchanged:
            final_outcome = transition.outcome
    return StreakTransition(final_outcome, transition.state)


def _rebuild(task, task_logs: list, through: date) -> StreakTransition:
    days = [d for d in (as_day(entry.date) for entry in task_logs) if d and d <= through]
    if not days:
        return StreakTransition(StreakOutcome.unchanged, StreakSnapshot())
    return _replay(task, task_logs, min(days), through, StreakSnapshot())


def rebuild_streak(task, logs: Iterable, through: date) -> StreakSnapshot:
    """Derive a streak from scratch by replaying the task's whole log history."""
    task_logs = [entry for entry in logs if entry.task_id == task.id]
    return _rebuild(task, task_logs, through).state


def update_streak(
    task,
    logs: Iterable,
    today: date,
    prior: Optional[StreakSnapshot] = None,
) -> StreakTransition:
    """Re-derive a task's streak as of ``today`` from its whole log history.

    The streak is always rebuilt from the logs, so back-filled and undone
    entries are both honoured. Only ``longest_streak`` is carried over from
    ``prior`` so that it never decreases. The outcome is ``unchanged`` when
    the rebuilt state matches ``prior``; otherwise it is the last transition
    of the replay that changed something, or ``broken`` when the rebuild
    lost streak days that the prior state had counted.
    """
    task_logs = [entry for entry in logs if entry.task_id == task.id]
    outcome, state = _rebuild(task, task_logs, today)

    if prior is not None:
        state.longest_streak = max(state.longest_streak, prior.longest_streak)
        if state == prior:
            return StreakTransition(StreakOutcome.unchanged, state)
        if outcome == StreakOutcome.unchanged and state.current_streak < prior.current_streak:
            outcome = StreakOutcome.broken

    if outcome != StreakOutcome.unchanged:
        logger.info(
            "Streak for task %s on %s: %s (current=%d, longest=%d, freezes=%d)",
            task.id,
            today.isoformat(),
            outcome.value,
            state.current_streak,
            state.longest_streak,
            state.freezes_available,
        )
    return StreakTransition(outcome, state)
