"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from effort_ledger.config import get_settings
from effort_ledger.database import init_db

logger = logging.getLogger(__name__)
settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.APP_DEBUG else settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)-8s %(name)s  %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Effort Ledger...")
    await init_db()
    logger.info("Database ready")
    yield
    logger.info("Effort Ledger stopped")


app = FastAPI(
    title="Effort Ledger",
    description="Quota, streak and pace tracking for recurring tasks",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

from effort_ledger.api.v1.router import router as api_router  # noqa: E402

app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health():
    """Basic liveness check."""
    return {"status": "ok", "service": "effort-ledger"}


@app.get("/health/ready")
async def health_ready():
    """Readiness check that pings the database."""
    from sqlalchemy import text

    from effort_ledger.database import engine

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "ready", "database": "ok"}
    except Exception as e:
        logger.error("Health ready check failed: %s", e)
        return JSONResponse({"status": "not_ready", "database": "error"}, status_code=503)


def run() -> None:
    import uvicorn

    uvicorn.run("effort_ledger.main:app", host=settings.APP_HOST, port=settings.APP_PORT)
