"""Ledger operations over the database.

Loads tasks, log entries and streak state through an explicitly passed
``AsyncSession`` and hands plain snapshots to the pure calculators in
``progress_service``, ``streak_service``, ``pace_service``,
``recommendation_service``, ``ranking_service``, ``allocation_service`` and
``records_service``.

Unknown task ids yield None and stale undo attempts yield False; nothing here
raises for missing data.
"""

import asyncio
import logging
from datetime import date, datetime, timedelta
from typing import Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from effort_ledger.config import get_settings
from effort_ledger.crud import (
    crud_log_entry,
    crud_task,
    get_all_streak_states,
    get_streak_state,
    save_streak_state,
)
from effort_ledger.dates import as_utc, iso_week_range, utcnow
from effort_ledger.models.log_entry import LogEntry, LogSource
from effort_ledger.models.task import Task
from effort_ledger.services import (
    allocation_service,
    pace_service,
    progress_service,
    ranking_service,
    recommendation_service,
    records_service,
    streak_service,
)
from effort_ledger.services.pace_service import TaskWarning
from effort_ledger.services.progress_service import TaskProgress
from effort_ledger.services.ranking_service import (
    ComparisonRequest,
    CompareFn,
    InsertionResult,
    RankingCancelled,
)
from effort_ledger.services.streak_service import StreakSnapshot, StreakTransition

logger = logging.getLogger(__name__)

# Appends and undos are serialised so a progress read that follows a write
# always sees it.
_write_lock = asyncio.Lock()


# ---------------------------------------------------------------------------
# Log entries
# ---------------------------------------------------------------------------


async def log_effort(
    db: AsyncSession,
    task_id: int,
    amount: Optional[int],
    day: date,
    source: LogSource = LogSource.manual,
    note: Optional[str] = None,
) -> Optional[LogEntry]:
    """Append a log entry. Returns None for an unknown task.

    HABIT tasks default to one unit. Raises ValueError for a negative amount
    or a TIME entry without an amount.
    """
    task = await crud_task.get(db, task_id)
    if task is None:
        return None
    if amount is None:
        if not progress_service.is_habit(task):
            raise ValueError("amount is required for TIME tasks")
        amount = 1
    if amount < 0:
        raise ValueError("amount must be a non-negative integer")

    async with _write_lock:
        entry = await crud_log_entry.append(
            db,
            LogEntry(task_id=task_id, date=day, amount=int(amount), source=source, note=note),
        )
    logger.debug("Logged %d for task %s on %s", entry.amount, task_id, day.isoformat())
    return entry


def _undo_allowed(entry: LogEntry, now: datetime) -> bool:
    window = timedelta(minutes=get_settings().UNDO_WINDOW_MINUTES)
    return as_utc(now) - as_utc(entry.created_at) <= window


async def undo_log(db: AsyncSession, log_id: int, now: Optional[datetime] = None) -> bool:
    """Remove a log entry if it was created within the undo window."""
    now = now or utcnow()
    async with _write_lock:
        entry = await crud_log_entry.get(db, log_id)
        if entry is None:
            return False
        if not _undo_allowed(entry, now):
            logger.info("Refused stale undo of log %s (created %s)", log_id, entry.created_at)
            return False
        return await crud_log_entry.remove_by_id(db, log_id)


async def undo_last_log(
    db: AsyncSession, task_id: int, day: date, now: Optional[datetime] = None
) -> bool:
    """Undo the most recent entry for a task on a day, within the undo window."""
    entry = await crud_log_entry.get_latest_for_task_and_date(db, task_id, day)
    if entry is None:
        return False
    return await undo_log(db, entry.id, now=now)


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


async def _logs_for_progress(db: AsyncSession, task_id: int, day: date) -> list[LogEntry]:
    start, end = progress_service.logs_window_for(day)
    return list(await crud_log_entry.query_by_task_and_date_range(db, task_id, start, end))


async def get_task_progress(db: AsyncSession, task_id: int, day: date) -> Optional[TaskProgress]:
    task = await crud_task.get(db, task_id)
    if task is None:
        return None
    logs = await _logs_for_progress(db, task_id, day)
    return progress_service.compute_progress(task, logs, day)


def _progress_sort_key(item: TaskProgress):
    return (item.task.priority.order, item.task.name.lower(), item.task_id)


async def get_all_task_progress(db: AsyncSession, day: date) -> list[TaskProgress]:
    """Progress of every non-archived task, sorted by priority then name."""
    tasks = await crud_task.get_active(db)
    start, end = progress_service.logs_window_for(day)
    logs = list(await crud_log_entry.query_by_date_range(db, start, end))
    results = [progress_service.compute_progress(task, logs, day) for task in tasks]
    return sorted(results, key=_progress_sort_key)


# ---------------------------------------------------------------------------
# Streaks
# ---------------------------------------------------------------------------


async def update_streak(db: AsyncSession, task_id: int, day: date) -> Optional[StreakTransition]:
    """Re-derive a task's streak as of ``day`` from its logs and persist it."""
    task = await crud_task.get(db, task_id)
    if task is None:
        return None

    row = await get_streak_state(db, task_id)
    prior = StreakSnapshot.from_model(row) if row is not None else None
    _, week_end = iso_week_range(day)
    logs = await crud_log_entry.query_by_task_and_date_range(db, task_id, None, week_end)

    transition = streak_service.update_streak(task, logs, day, prior)
    if row is None or transition.state != prior:
        await save_streak_state(db, task_id, transition.state)
    return transition


async def get_streak(db: AsyncSession, task_id: int) -> Optional[StreakSnapshot]:
    row = await get_streak_state(db, task_id)
    return StreakSnapshot.from_model(row) if row is not None else None


async def export_streaks(db: AsyncSession) -> dict[str, dict]:
    """``{task_id: state}`` using only integers and ISO date strings."""
    rows = await get_all_streak_states(db)
    return {str(row.task_id): StreakSnapshot.from_model(row).to_dict() for row in rows}


# ---------------------------------------------------------------------------
# Warnings and guidance
# ---------------------------------------------------------------------------


async def get_task_warnings(db: AsyncSession, day: date) -> list[TaskWarning]:
    tasks = await crud_task.get_active(db)
    start, end = iso_week_range(day)
    logs = await crud_log_entry.query_by_date_range(db, start, end)
    return pace_service.get_task_warnings(tasks, logs, day)


async def get_recommendation(
    db: AsyncSession, day: date
) -> Optional[recommendation_service.TaskRecommendation]:
    all_progress = await get_all_task_progress(db, day)
    warnings = await get_task_warnings(db, day)
    return recommendation_service.get_task_recommendation(all_progress, warnings, day)


# ---------------------------------------------------------------------------
# Allocation and records
# ---------------------------------------------------------------------------


async def get_allocation(
    db: AsyncSession, day: date, period: allocation_service.AllocationPeriod
) -> allocation_service.AllocationScore:
    start, end = allocation_service.period_bounds(day, period)
    tasks = await crud_task.get_all(db)
    logs = await crud_log_entry.query_by_date_range(db, start, end)
    return allocation_service.calculate_allocation(day, period, tasks, logs)


async def get_focus_score(db: AsyncSession, day: date) -> allocation_service.FocusScore:
    tasks = await crud_task.get_all(db)
    logs = await crud_log_entry.query_by_date_range(db, day, day)
    return allocation_service.calculate_focus_score(day, tasks, logs)


async def get_weekly_focus_average(db: AsyncSession, day: date) -> int:
    start, end = iso_week_range(day)
    tasks = await crud_task.get_all(db)
    logs = await crud_log_entry.query_by_date_range(db, start, end)
    return allocation_service.calculate_weekly_focus_average(day, tasks, logs)


async def _longest_streak(db: AsyncSession) -> int:
    rows = await get_all_streak_states(db)
    return max((row.longest_streak for row in rows), default=0)


async def get_personal_records(db: AsyncSession) -> list[records_service.PersonalRecord]:
    """Records over the whole history; the streak record is the best persisted one."""
    tasks = await crud_task.get_all(db)
    logs = await crud_log_entry.query_all(db)
    return records_service.get_personal_records(tasks, logs, await _longest_streak(db))


async def get_all_time_records(db: AsyncSession) -> records_service.AllTimeRecords:
    tasks = await crud_task.get_all(db)
    logs = await crud_log_entry.query_all(db)
    return records_service.calculate_all_time_records(tasks, logs, await _longest_streak(db))


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


async def _ranking_peers(db: AsyncSession, task: Task) -> list[Task]:
    """Already-ranked tasks sharing the task's priority, most important first."""
    peers = await crud_task.get_by_priority(db, task.priority, exclude_id=task.id)
    ordered = ranking_service.sorted_tasks_for_priority(peers, task.priority)
    return [t for t in ordered if t.priority_rank is not None]


async def ranking_peer_count(db: AsyncSession, task_id: int) -> int:
    task = await crud_task.get(db, task_id)
    if task is None:
        return 0
    return len(await _ranking_peers(db, task))


async def _apply_rank(
    db: AsyncSession, task: Task, peers: list[Task], result: InsertionResult
) -> bool:
    """Store the rank; rebalance the priority level when gaps got too small.

    A rebalance keeps the order the search decided, with the task placed at
    ``result.insertion_index`` among ``peers``, so ties in rank never reorder
    it relative to the tasks it was compared with.
    """
    task.priority_rank = result.insertion_rank
    task.comparison_count = result.comparison_count
    db.add(task)
    await db.flush()

    ordered = ranking_service.insert_at(peers, task, result.insertion_index)
    if not ranking_service.needs_rebalancing(ordered):
        return False
    for peer, new_rank in ranking_service.rebalance_ranks(ordered):
        peer.priority_rank = new_rank
        db.add(peer)
    await db.flush()
    logger.info("Rebalanced %d %s task ranks", len(ordered), task.priority.value)
    return True


async def rank_task(
    db: AsyncSession, task_id: int, answers: list[int]
) -> Optional[Union[ComparisonRequest, tuple[InsertionResult, bool]]]:
    """Advance an interactive ranking by replaying the answers given so far.

    Returns the next ``ComparisonRequest`` while more answers are needed, or
    ``(result, rebalanced)`` once the rank has been stored. None for an
    unknown task. Raises ValueError for surplus or invalid answers.
    """
    task = await crud_task.get(db, task_id)
    if task is None:
        return None
    peers = await _ranking_peers(db, task)
    outcome = ranking_service.resume_insertion(task, peers, answers)
    if isinstance(outcome, ComparisonRequest):
        return outcome
    rebalanced = await _apply_rank(db, task, peers, outcome)
    logger.info(
        "Ranked task %s at %d after %d comparison(s)",
        task_id,
        outcome.insertion_rank,
        outcome.comparison_count,
    )
    return outcome, rebalanced


async def rank_task_with(
    db: AsyncSession, task_id: int, compare: CompareFn
) -> Optional[tuple[InsertionResult, bool]]:
    """Rank a task using a comparison oracle.

    If the oracle cancels, the partial search is discarded and the task gets
    the next available rank instead.
    """
    task = await crud_task.get(db, task_id)
    if task is None:
        return None
    peers = await _ranking_peers(db, task)
    try:
        result = await ranking_service.find_insertion_point(task, peers, compare)
    except RankingCancelled:
        return await skip_ranking(db, task_id)
    rebalanced = await _apply_rank(db, task, peers, result)
    return result, rebalanced


async def skip_ranking(db: AsyncSession, task_id: int) -> Optional[tuple[InsertionResult, bool]]:
    """Give a task the next available rank without any comparisons."""
    task = await crud_task.get(db, task_id)
    if task is None:
        return None
    peers = await _ranking_peers(db, task)
    rank = ranking_service.next_available_rank(peers)
    result = InsertionResult(insertion_rank=rank, comparison_count=0, insertion_index=len(peers))
    rebalanced = await _apply_rank(db, task, peers, result)
    logger.info("Ranking skipped for task %s; assigned rank %d", task_id, rank)
    return result, rebalanced


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


async def delete_task(db: AsyncSession, task_id: int) -> bool:
    """Delete a task with its logs and streak state."""
    removed = await crud_task.remove(db, id=task_id)
    if removed is not None:
        logger.info("Deleted task %s", task_id)
    return removed is not None
