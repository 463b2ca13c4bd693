"""Health check endpoints."""

import asyncio

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.clock import SystemClock
from core.config import settings
from infrastructure.database.session import get_async_session

router = APIRouter(tags=["health"])

_clock = SystemClock()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str
    environment: str
    database: str | None = None


@router.get("/health", response_model=HealthResponse, summary="Basic health check")
async def health_check() -> HealthResponse:
    """
    Basic health check for load balancers.

    Returns service status without checking dependencies.
    """
    return HealthResponse(
        status="healthy",
        version="1.0.0",
        timestamp=_clock.now().isoformat(),
        environment=settings.app_env,
    )


@router.get(
    "/health/detailed",
    response_model=HealthResponse,
    summary="Detailed health check",
)
async def detailed_health_check(
    db: AsyncSession = Depends(get_async_session),
) -> HealthResponse:
    """
    Detailed health check including invitation store connectivity.

    The database check is bounded by the same timeout as every store call.
    """
    try:
        async with asyncio.timeout(settings.store_timeout_seconds):
            await db.execute(text("SELECT 1"))
        db_status = "healthy"
    except TimeoutError:
        db_status = "unhealthy: timed out"
    except SQLAlchemyError as e:
        db_status = f"unhealthy: {type(e).__name__}"

    overall_status = "healthy" if db_status == "healthy" else "degraded"

    return HealthResponse(
        status=overall_status,
        version="1.0.0",
        timestamp=_clock.now().isoformat(),
        environment=settings.app_env,
        database=db_status,
    )
