"""Unit tests for the forgiving streak engine."""

from datetime import date, timedelta
from types import SimpleNamespace

import pytest

from effort_ledger.services.streak_service import (
    FREEZE_HISTORY_LIMIT,
    MAX_FREEZES,
    StreakOutcome,
    StreakSnapshot,
    compute_transition,
    compute_weekly_transition,
    rebuild_streak,
    update_streak,
)

MONDAY = date(2024, 1, 1)
TODAY = MONDAY + timedelta(days=16)


def _task(**overrides):
    fields = dict(
        id=7,
        name="Piano",
        quota_type="DAILY",
        task_type="TIME",
        daily_quota_minutes=30,
        weekly_quota_minutes=None,
        weekly_days_target=None,
        habit_quota_count=None,
        allow_carryover=False,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def _log(day, amount=30, task_id=7):
    return SimpleNamespace(task_id=task_id, date=day, amount=amount)


def _days_ago(n):
    return TODAY - timedelta(days=n)


# ---------------------------------------------------------------------------
# compute_transition (daily)
# ---------------------------------------------------------------------------


def test_freeze_bridges_a_single_missed_day():
    prior = StreakSnapshot(
        current_streak=4, longest_streak=4, last_completed_date=_days_ago(2), freezes_available=1
    )

    outcome, state = compute_transition(TODAY, True, prior)

    assert outcome == StreakOutcome.bridged_by_freeze
    assert state.freezes_available == 0
    assert state.freeze_used_dates == [_days_ago(1)]
    assert state.current_streak == 5
    assert state.longest_streak == 5
    assert state.last_completed_date == TODAY
    # prior is left untouched
    assert prior.freezes_available == 1
    assert prior.freeze_used_dates == []


def test_consecutive_completion_continues_and_earns_freeze_every_seven_days():
    prior = StreakSnapshot(current_streak=6, longest_streak=6, last_completed_date=_days_ago(1))
    outcome, state = compute_transition(TODAY, True, prior)
    assert outcome == StreakOutcome.continued
    assert state.current_streak == 7
    assert state.freezes_available == 1


def test_freezes_are_capped():
    prior = StreakSnapshot(
        current_streak=13,
        longest_streak=13,
        last_completed_date=_days_ago(1),
        freezes_available=MAX_FREEZES,
    )
    _, state = compute_transition(TODAY, True, prior)
    assert state.current_streak == 14
    assert state.freezes_available == MAX_FREEZES


def test_gap_longer_than_one_day_resets_even_with_freezes():
    prior = StreakSnapshot(
        current_streak=9, longest_streak=12, last_completed_date=_days_ago(3), freezes_available=2
    )
    outcome, state = compute_transition(TODAY, True, prior)
    assert outcome == StreakOutcome.reset
    assert state.current_streak == 1
    assert state.streak_start_date == TODAY
    assert state.freezes_available == 2
    assert state.longest_streak == 12


def test_first_completion_starts_a_streak():
    outcome, state = compute_transition(TODAY, True, StreakSnapshot())
    assert outcome == StreakOutcome.reset
    assert state.current_streak == 1
    assert state.longest_streak == 1


def test_missed_day_with_freeze_waits_for_completion():
    prior = StreakSnapshot(current_streak=5, longest_streak=5, last_completed_date=_days_ago(2), freezes_available=1)
    outcome, state = compute_transition(TODAY, False, prior)
    assert outcome == StreakOutcome.unchanged
    assert state.current_streak == 5
    assert state.freezes_available == 1


def test_missed_day_without_freeze_breaks_streak():
    prior = StreakSnapshot(current_streak=5, longest_streak=8, last_completed_date=_days_ago(2))
    outcome, state = compute_transition(TODAY, False, prior)
    assert outcome == StreakOutcome.broken
    assert state.current_streak == 0
    assert state.streak_start_date is None
    assert state.longest_streak == 8


@pytest.mark.parametrize("last", [TODAY, TODAY - timedelta(days=1)])
def test_no_change_when_already_counted_or_day_not_over(last):
    prior = StreakSnapshot(current_streak=3, longest_streak=3, last_completed_date=last)
    outcome, state = compute_transition(TODAY, False, prior)
    assert outcome == StreakOutcome.unchanged
    assert state == prior


def test_completing_same_day_twice_does_not_double_count():
    prior = StreakSnapshot(current_streak=3, longest_streak=3, last_completed_date=TODAY)
    outcome, state = compute_transition(TODAY, True, prior)
    assert outcome == StreakOutcome.unchanged
    assert state.current_streak == 3


def test_freeze_history_keeps_most_recent_dates():
    history = [MONDAY + timedelta(days=i) for i in range(FREEZE_HISTORY_LIMIT)]
    prior = StreakSnapshot(
        current_streak=20,
        longest_streak=20,
        last_completed_date=_days_ago(2),
        freezes_available=1,
        freeze_used_dates=history,
    )
    _, state = compute_transition(TODAY, True, prior)
    assert len(state.freeze_used_dates) == FREEZE_HISTORY_LIMIT
    assert state.freeze_used_dates[-1] == _days_ago(1)
    assert state.freeze_used_dates[0] == history[1]


def test_longest_never_decreases_and_freezes_stay_in_range():
    # Completed most days with occasional single and double misses
    pattern = [1] * 9 + [0] + [1] * 8 + [0, 0] + [1] * 15 + [0] + [1] * 3 + [0, 0, 0, 1]
    state = StreakSnapshot()
    longest = 0
    for offset, completed in enumerate(pattern):
        _, state = compute_transition(MONDAY + timedelta(days=offset), bool(completed), state)
        assert state.longest_streak >= longest
        assert 0 <= state.freezes_available <= MAX_FREEZES
        longest = state.longest_streak


# ---------------------------------------------------------------------------
# compute_weekly_transition
# ---------------------------------------------------------------------------


def test_weekly_streak_continues_from_previous_week():
    prior = StreakSnapshot(current_streak=2, longest_streak=2, last_completed_date=MONDAY + timedelta(days=4))
    next_wednesday = MONDAY + timedelta(days=9)
    outcome, state = compute_weekly_transition(next_wednesday, True, prior)
    assert outcome == StreakOutcome.continued
    assert state.current_streak == 3
    assert state.freezes_available == 0


def test_weekly_streak_increments_once_per_week():
    prior = StreakSnapshot(current_streak=3, longest_streak=3, last_completed_date=MONDAY + timedelta(days=1))
    outcome, state = compute_weekly_transition(MONDAY + timedelta(days=5), True, prior)
    assert outcome == StreakOutcome.unchanged
    assert state.current_streak == 3


def test_weekly_streak_breaks_after_a_missed_week():
    prior = StreakSnapshot(current_streak=4, longest_streak=4, last_completed_date=MONDAY + timedelta(days=2))
    two_weeks_later = MONDAY + timedelta(days=14)

    outcome, state = compute_weekly_transition(two_weeks_later, False, prior)
    assert outcome == StreakOutcome.broken
    assert state.current_streak == 0

    outcome, state = compute_weekly_transition(two_weeks_later, True, prior)
    assert outcome == StreakOutcome.reset
    assert state.current_streak == 1
    assert state.streak_start_date == two_weeks_later
    assert state.longest_streak == 4


# ---------------------------------------------------------------------------
# update_streak / rebuild_streak (from logs)
# ---------------------------------------------------------------------------


def test_rebuild_counts_consecutive_completed_days():
    task = _task()
    logs = [_log(MONDAY), _log(MONDAY + timedelta(days=1)), _log(MONDAY + timedelta(days=2))]

    outcome, state = update_streak(task, logs, MONDAY + timedelta(days=2))

    assert outcome == StreakOutcome.continued
    assert state.current_streak == 3
    assert state.streak_start_date == MONDAY
    assert state.last_completed_date == MONDAY + timedelta(days=2)


def test_partial_day_does_not_count():
    task = _task()
    logs = [_log(MONDAY), _log(MONDAY + timedelta(days=1), amount=10)]
    state = rebuild_streak(task, logs, MONDAY + timedelta(days=1))
    assert state.current_streak == 1
    assert state.last_completed_date == MONDAY


def test_backfilled_log_is_honoured():
    task = _task()
    prior = StreakSnapshot(current_streak=1, longest_streak=1, last_completed_date=MONDAY)
    logs = [_log(MONDAY), _log(MONDAY + timedelta(days=1)), _log(MONDAY + timedelta(days=2))]
    _, state = update_streak(task, logs, MONDAY + timedelta(days=2), prior)
    assert state.current_streak == 3


def test_rebuild_uses_earned_freeze():
    task = _task()
    logs = [_log(MONDAY + timedelta(days=i)) for i in range(7)]
    logs.append(_log(MONDAY + timedelta(days=8)))

    outcome, state = update_streak(task, logs, MONDAY + timedelta(days=8))

    assert outcome == StreakOutcome.bridged_by_freeze
    assert state.current_streak == 8
    assert state.freezes_available == 0
    assert state.freeze_used_dates == [MONDAY + timedelta(days=7)]


def test_update_without_new_completions_breaks_stale_streak():
    task = _task()
    prior = StreakSnapshot(current_streak=3, longest_streak=3, last_completed_date=MONDAY)
    outcome, state = update_streak(task, [], MONDAY + timedelta(days=3), prior)
    assert outcome == StreakOutcome.broken
    assert state.current_streak == 0
    assert state.longest_streak == 3


def test_removed_log_is_reflected_on_next_update():
    task = _task()
    _, completed = update_streak(task, [_log(MONDAY)], MONDAY)
    assert completed.current_streak == 1

    outcome, state = update_streak(task, [], MONDAY, completed)

    assert outcome == StreakOutcome.broken
    assert state.current_streak == 0
    assert state.last_completed_date is None
    assert state.longest_streak == 1


def test_update_with_same_history_is_unchanged():
    task = _task()
    logs = [_log(MONDAY), _log(MONDAY + timedelta(days=1))]
    _, first = update_streak(task, logs, MONDAY + timedelta(days=1))
    outcome, second = update_streak(task, logs, MONDAY + timedelta(days=1), first)
    assert outcome == StreakOutcome.unchanged
    assert second == first


def test_zero_quota_task_never_builds_streak():
    task = _task(daily_quota_minutes=0)
    outcome, state = update_streak(task, [_log(MONDAY)], MONDAY)
    assert outcome == StreakOutcome.unchanged
    assert state.current_streak == 0


def test_weekly_task_streak_from_logs():
    task = _task(quota_type="WEEKLY", daily_quota_minutes=None, weekly_quota_minutes=60)
    logs = [_log(MONDAY, 60), _log(MONDAY + timedelta(days=8), 60)]
    _, state = update_streak(task, logs, MONDAY + timedelta(days=9))
    assert state.current_streak == 2


def test_other_tasks_logs_are_ignored():
    task = _task()
    state = rebuild_streak(task, [_log(MONDAY, task_id=99)], MONDAY)
    assert state == StreakSnapshot()


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------


def test_to_dict_uses_only_ints_and_iso_strings():
    snapshot = StreakSnapshot(
        current_streak=2,
        longest_streak=5,
        last_completed_date=MONDAY,
        freezes_available=1,
        freeze_used_dates=[MONDAY - timedelta(days=3)],
        streak_start_date=MONDAY - timedelta(days=1),
    )
    assert snapshot.to_dict() == {
        "current_streak": 2,
        "longest_streak": 5,
        "last_completed_date": "2024-01-01",
        "freezes_available": 1,
        "freeze_used_dates": ["2023-12-29"],
        "streak_start_date": "2023-12-31",
    }
    assert StreakSnapshot.from_dict(snapshot.to_dict()) == snapshot


def test_from_dict_clamps_and_drops_bad_values():
    snapshot = StreakSnapshot.from_dict(
        {
            "current_streak": -3,
            "freezes_available": 9,
            "last_completed_date": "garbage",
            "freeze_used_dates": ["2024-01-01", "nope"],
        }
    )
    assert snapshot.current_streak == 0
    assert snapshot.freezes_available == MAX_FREEZES
    assert snapshot.last_completed_date is None
    assert snapshot.freeze_used_dates == [MONDAY]
