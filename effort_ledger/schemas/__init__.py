from effort_ledger.schemas.task import TaskCreate, TaskUpdate, TaskResponse
from effort_ledger.schemas.log_entry import (
    LogEntryCreate,
    LogEntryResponse,
    UndoLastRequest,
    UndoResult,
)
from effort_ledger.schemas.progress import (
    TaskProgressResponse,
    StreakStateResponse,
    PaceProjectionResponse,
    TaskWarningResponse,
    RecommendationResponse,
)
from effort_ledger.schemas.ranking import RankRequest, ComparisonPrompt, RankResult
from effort_ledger.schemas.insights import (
    AllocationResponse,
    FocusScoreResponse,
    WeeklyFocusResponse,
    PersonalRecordResponse,
    AllTimeRecordsResponse,
)

__all__ = [
    "TaskCreate",
    "TaskUpdate",
    "TaskResponse",
    "LogEntryCreate",
    "LogEntryResponse",
    "UndoLastRequest",
    "UndoResult",
    "TaskProgressResponse",
    "StreakStateResponse",
    "PaceProjectionResponse",
    "TaskWarningResponse",
    "RecommendationResponse",
    "RankRequest",
    "ComparisonPrompt",
    "RankResult",
    "AllocationResponse",
    "FocusScoreResponse",
    "WeeklyFocusResponse",
    "PersonalRecordResponse",
    "AllTimeRecordsResponse",
]
