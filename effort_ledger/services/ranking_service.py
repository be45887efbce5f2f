"""Comparison-based priority ranking by binary insertion.

The search is a generator: it yields a ``ComparisonRequest`` each time it
needs to know whether the new task outranks an existing one, and is resumed
with the answer. Drivers can answer from a callback (``find_insertion_point``)
or by replaying answers collected over several HTTP round trips
(``resume_insertion``). The same answers always produce the same rank.
"""

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generator, Sequence, Union

from effort_ledger.models.task import Priority

logger = logging.getLogger(__name__)

RANK_STRIDE = 100
RANK_EDGE_OFFSET = 10
MIN_RANK_GAP = 10

CANDIDATE_WINS = 1
INCUMBENT_WINS = -1


class RankingCancelled(Exception):
    """Raised by a comparison oracle to abandon the search."""


@dataclass(frozen=True)
class ComparisonRequest:
    candidate: Any
    incumbent: Any
    index: int  # position of the incumbent in the sorted list
    step: int  # 1-based comparison number


@dataclass(frozen=True)
class InsertionResult:
    insertion_rank: int
    comparison_count: int
    insertion_index: int


CompareFn = Callable[[Any, Any], Union[int, Awaitable[int]]]
InsertionSearch = Generator[ComparisonRequest, int, InsertionResult]


def _rank_of(task) -> int:
    rank = task.priority_rank
    return RANK_STRIDE if rank is None else rank


def _normalize_answer(answer) -> int:
    if answer is True:
        return CANDIDATE_WINS
    if answer is False:
        return INCUMBENT_WINS
    try:
        value = int(answer)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid comparison answer: {answer!r}") from e
    if value not in (CANDIDATE_WINS, INCUMBENT_WINS):
        raise ValueError(f"Comparison answer must be 1 or -1, got {answer!r}")
    return value


def rank_for_index(existing: Sequence, index: int) -> int:
    """Rank for a task inserted before ``existing[index]`` (or at the end)."""
    if not existing:
        return RANK_STRIDE
    if index <= 0:
        return max(0, _rank_of(existing[0]) - RANK_EDGE_OFFSET)
    if index >= len(existing):
        return _rank_of(existing[-1]) + RANK_STRIDE

    prev_rank = _rank_of(existing[index - 1])
    next_rank = _rank_of(existing[index])
    rank = (prev_rank + next_rank) // 2
    if rank in (prev_rank, next_rank):
        rank = prev_rank + 1
    return rank


def insertion_search(new_task, existing: Sequence) -> InsertionSearch:
    """Binary search over ``existing`` (sorted by rank, most important first).

    Performs at most ceil(log2(n + 1)) comparisons for n existing tasks.
    """
    left, right = 0, len(existing) - 1
    comparisons = 0
    while left <= right:
        mid = (left + right) // 2
        comparisons += 1
        answer = yield ComparisonRequest(
            candidate=new_task, incumbent=existing[mid], index=mid, step=comparisons
        )
        if _normalize_answer(answer) == CANDIDATE_WINS:
            right = mid - 1
        else:
            left = mid + 1

    return InsertionResult(
        insertion_rank=rank_for_index(existing, left),
        comparison_count=comparisons,
        insertion_index=left,
    )


def resume_insertion(
    new_task, existing: Sequence, answers: Sequence[int]
) -> Union[ComparisonRequest, InsertionResult]:
    """Replay recorded answers; return the next request or the final result."""
    search = insertion_search(new_task, existing)
    try:
        request = next(search)
        for answer in answers:
            request = search.send(answer)
    except StopIteration as stop:
        if len(answers) > stop.value.comparison_count:
            raise ValueError(
                f"Got {len(answers)} answers but only "
                f"{stop.value.comparison_count} comparisons were needed"
            ) from None
        return stop.value
    return request


async def find_insertion_point(new_task, existing: Sequence, compare: CompareFn) -> InsertionResult:
    """Drive the search with ``compare(candidate, incumbent)``.

    ``compare`` may be sync or async and returns 1 when the candidate is more
    important. If it raises ``RankingCancelled`` the search is closed and the
    exception propagates; no rank is produced.
    """
    search = insertion_search(new_task, existing)
    request = None
    try:
        request = next(search)
        while True:
            answer = compare(request.candidate, request.incumbent)
            if inspect.isawaitable(answer):
                answer = await answer
            request = search.send(answer)
    except StopIteration as stop:
        return stop.value
    except RankingCancelled:
        logger.info("Ranking cancelled at comparison %d", request.step if request else 0)
        raise
    finally:
        search.close()


def sorted_tasks_for_priority(tasks, priority: Priority) -> list:
    """Non-archived tasks of one priority; ranked first by rank, then by name."""
    selected = [t for t in tasks if Priority(t.priority) == priority and not t.is_archived]
    return sorted(
        selected,
        key=lambda t: (t.priority_rank is None, t.priority_rank or 0, t.name.lower()),
    )


def next_available_rank(existing: Sequence) -> int:
    """A rank after every ranked task, used when ranking is skipped."""
    ranks = [t.priority_rank for t in existing if t.priority_rank is not None]
    if not ranks:
        return RANK_STRIDE
    return max(ranks) + RANK_STRIDE


def insert_at(existing: Sequence, task, index: int) -> list:
    """``existing`` with ``task`` placed at ``index``, the order a search decided."""
    ordered = list(existing)
    ordered.insert(max(0, min(index, len(ordered))), task)
    return ordered


def needs_rebalancing(tasks: Sequence) -> bool:
    """True when any two adjacent ranked tasks are closer than MIN_RANK_GAP."""
    ranks = sorted(t.priority_rank for t in tasks if t.priority_rank is not None)
    return any(b - a < MIN_RANK_GAP for a, b in zip(ranks, ranks[1:]))


def rebalance_ranks(tasks: Sequence) -> list[tuple[Any, int]]:
    """Pair each task (in the given order) with a fresh rank: 100, 200, ..."""
    return [(task, (i + 1) * RANK_STRIDE) for i, task in enumerate(tasks)]
