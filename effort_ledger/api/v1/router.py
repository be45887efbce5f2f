"""Aggregates all v1 routers."""
from fastapi import APIRouter
from effort_ledger.api.v1.tasks import router as tasks_router
from effort_ledger.api.v1.logs import router as logs_router
from effort_ledger.api.v1.progress import router as progress_router
from effort_ledger.api.v1.insights import router as insights_router

router = APIRouter()
router.include_router(tasks_router)
router.include_router(logs_router)
router.include_router(progress_router)
router.include_router(insights_router)
