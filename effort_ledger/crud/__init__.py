from effort_ledger.crud.tasks import crud_task
from effort_ledger.crud.log_entries import crud_log_entry
from effort_ledger.crud.streak_states import (
    get as get_streak_state,
    get_all as get_all_streak_states,
    save as save_streak_state,
)

__all__ = [
    "crud_task",
    "crud_log_entry",
    "get_streak_state",
    "get_all_streak_states",
    "save_streak_state",
]
