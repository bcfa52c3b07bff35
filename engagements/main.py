"""
Main FastAPI application.

This is the entry point for the API server.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from engagements.core.config import settings
from engagements.errors import AppError, app_error_handler
from engagements.routers import health, hiring, interviews, notifications, realtime
from engagements.services.realtime import ConnectionManager
from engagements.services.signaling import LocalRoomTokenAllocator
from engagements.workers.contract_sweep import ContractSweepJob
from engagements.workers.notification_dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(background_jobs: Optional[bool] = None) -> FastAPI:
    """
    Build the application.

    background_jobs overrides BACKGROUND_JOBS_ENABLED; tests pass False so
    the sweep and flush loop never start on their own.
    """
    run_jobs = settings.BACKGROUND_JOBS_ENABLED if background_jobs is None else background_jobs

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan context manager for the FastAPI app.

        - On startup: wire the real-time channel and start background jobs
        - On shutdown: stop the jobs and close open sockets
        """
        configure_logging()
        logger.info("Starting %s...", settings.APP_NAME)

        channel = ConnectionManager()
        app.state.channel = channel
        app.state.room_allocator = LocalRoomTokenAllocator()
        app.state.contract_sweep = ContractSweepJob()
        app.state.notification_dispatcher = NotificationDispatcher(channel=channel)

        if run_jobs:
            app.state.contract_sweep.start()
            app.state.notification_dispatcher.start()

        yield  # The server runs while we're "yielded" here

        logger.info("Shutting down %s...", settings.APP_NAME)
        app.state.contract_sweep.stop()
        await app.state.notification_dispatcher.stop()
        await channel.close_all()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Freelance engagement lifecycle: hiring, interviews and notifications",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(AppError, app_error_handler)

    # Include routers (API endpoints)
    app.include_router(health.router, tags=["Health"])
    app.include_router(hiring.router)
    app.include_router(interviews.router)
    app.include_router(notifications.router)
    app.include_router(realtime.router)

    return app


app = create_app()
