from typing import Literal, Optional

from pydantic import BaseModel, Field


class RankRequest(BaseModel):
    # Answers to the comparisons asked so far, in order:
    # 1 = the task being ranked is more important, -1 = the other task is.
    answers: list[Literal[1, -1]] = Field(default_factory=list)


class ComparisonPrompt(BaseModel):
    status: Literal["needs_comparison"] = "needs_comparison"
    task_id: int
    incumbent_id: int
    incumbent_name: str
    step: int
    max_comparisons: int


class RankResult(BaseModel):
    status: Literal["ranked"] = "ranked"
    task_id: int
    priority_rank: int
    comparison_count: int
    skipped: bool = False
    rebalanced: bool = False
    insertion_index: Optional[int] = None
