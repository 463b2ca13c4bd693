"""Main FastAPI application entry point."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.exception_handlers import setup_exception_handlers
from api.middleware.logging import RequestLoggingMiddleware
from api.middleware.request_id import RequestIDMiddleware
from api.routes.health import router as health_router
from api.v1 import router as v1_router
from api.v1.dependencies import get_invitation_service
from core.config import settings
from core.logging import setup_logging
from core.rate_limit import limiter, rate_limit_exceeded_handler

logger = structlog.get_logger()

# Initialize structured logging
setup_logging()


async def expired_invitation_report_loop(interval_seconds: int) -> None:
    """Periodically log invitations that expired without being resolved.

    Expiry is derived from ``expires_at``, so the sweep only reports.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await get_invitation_service().report_expired_invitations()
        except Exception:
            logger.exception("expired_invitation_report_failed")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager for startup/shutdown tasks."""
    interval = settings.expired_invitation_report_interval_seconds
    report_task = None
    if interval > 0:
        report_task = asyncio.create_task(expired_invitation_report_loop(interval))
    logger.info("application_started", app_env=settings.app_env, report_interval=interval)
    yield
    if report_task is not None:
        report_task.cancel()
        with suppress(asyncio.CancelledError):
            await report_task


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        title=settings.app_name,
        description=(
            "## Account Invitations\n\n"
            "Invite people to an account by email and let them accept or "
            "decline. Invitations expire after "
            f"{settings.invitation_expiry_days} days.\n\n"
            "### Authentication\n"
            "All endpoints (except `/health`) require a valid JWT token "
            "in the Authorization header:\n"
            "```\nAuthorization: Bearer <your_token>\n```\n\n"
            "### Rate Limits\n"
            "- GET endpoints: 30 requests/minute\n"
            "- POST endpoints: 10 requests/minute"
        ),
        version="1.0.0",
        debug=settings.debug,
        openapi_tags=[
            {
                "name": "health",
                "description": "Health check endpoints",
            },
            {
                "name": "invitations",
                "description": "Account invitation lifecycle",
            },
        ],
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # Tracking middleware (LIFO order - last added = outermost)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # GZip compression for responses > 1KB
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Setup exception handlers
    setup_exception_handlers(app)

    # Include routers
    app.include_router(health_router)
    app.include_router(v1_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
    )
