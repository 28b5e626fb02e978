"""
Code Progress Tracker API

Application factory wiring configuration, logging, middleware, routers and
the batch-sync scheduler.

Usage:
    uvicorn tracker.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tracker.config import settings
from tracker.middleware.error_handling import setup_error_handling
from tracker.middleware.rate_limit import setup_rate_limiting
from tracker.routers import activity, health, milestones, streaks, sync
from tracker.services.scheduler import start_scheduler, stop_scheduler

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create shared resources on startup and release them on shutdown."""
    app.state.http_client = httpx.AsyncClient(
        timeout=settings.PLATFORM_REQUEST_TIMEOUT_SECONDS
    )
    if settings.BATCH_SYNC_ENABLED:
        start_scheduler()
    logger.info(f"{settings.APP_NAME} started")

    yield

    if settings.BATCH_SYNC_ENABLED:
        stop_scheduler()
    await app.state.http_client.aclose()
    logger.info(f"{settings.APP_NAME} stopped")


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    configure_logging()

    app = FastAPI(title=f"{settings.APP_NAME} API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_error_handling(app, debug=settings.DEBUG)
    setup_rate_limiting(app, enabled=settings.RATE_LIMIT_ENABLED)

    app.include_router(health.router)
    app.include_router(sync.router)
    app.include_router(activity.router)
    app.include_router(streaks.router)
    app.include_router(milestones.router)

    return app


app = create_app()
