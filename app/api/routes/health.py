"""Liveness and readiness probes."""

import time

import structlog
from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import get_settings
from app.core.database import get_engine
from app.core.metrics import jobly_db_query_failures_total, jobly_db_query_latency_seconds
from app.schemas.v1.health import HealthResponse, ReadyResponse

router = APIRouter(tags=["health"])
logger = structlog.get_logger(__name__)

_READY_QUERY = "health_ready"


def _health(status: str) -> HealthResponse:
    app = get_settings().app
    return HealthResponse(status=status, service=app.name, version=app.version)


@router.get("/health", response_model=HealthResponse)
async def health_check():
    return _health("ok")


@router.get("/health/live", response_model=HealthResponse)
async def liveness_check():
    return _health("alive")


@router.get("/health/ready", response_model=ReadyResponse)
async def readiness_check():
    """Ready when the database answers `SELECT 1`; degraded otherwise (still 200)."""
    started = time.perf_counter()
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        jobly_db_query_failures_total.labels(query_name=_READY_QUERY).inc()
        logger.warning("Database not ready", error=str(exc))
        return ReadyResponse(status="degraded", database=False)

    elapsed = time.perf_counter() - started
    jobly_db_query_latency_seconds.labels(query_name=_READY_QUERY).observe(elapsed)
    return ReadyResponse(
        status="ready", database=True, database_latency_ms=round(elapsed * 1000, 2)
    )
