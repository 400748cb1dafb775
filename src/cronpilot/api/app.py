"""CronPilot FastAPI application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cronpilot import __version__
from cronpilot.chat import ChatService
from cronpilot.engine import (
    ConfigError,
    CronPilotError,
    DuplicateItemError,
    NotConfiguredError,
    NotFoundError,
    ProviderError,
)
from cronpilot.services import build_scheduler, build_services

from .routes import automations, health, settings, videos
from .routes import jobs as job_routes

if TYPE_CHECKING:
    from cronpilot.models import JobDefinition
    from cronpilot.scheduler import SchedulerService
    from cronpilot.services import Services

logger = logging.getLogger(__name__)


def status_for_error(error: CronPilotError) -> int:
    """Map an error to the HTTP status returned to clients."""
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, DuplicateItemError):
        return 409
    if isinstance(error, NotConfiguredError):
        return 503
    if isinstance(error, ConfigError):
        return 500
    if isinstance(error, ProviderError):
        return 502
    return 500


def create_app(
    *,
    services: Services | None = None,
    scheduler: SchedulerService | None = None,
    jobs: Iterable[JobDefinition] | None = None,
    start_scheduler: bool = True,
    shutdown_timeout: float = 30.0,
    enable_cors: bool = True,
    cors_origins: list[str] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        services: Wired services. Built from configuration when None.
        scheduler: Scheduler to run. Built with the job list when None.
        jobs: Jobs registered on a newly built scheduler.
        start_scheduler: Start the scheduler with the application and stop
            it on shutdown.
        shutdown_timeout: Seconds to wait for running jobs on shutdown.
        enable_cors: Enable CORS middleware.
        cors_origins: List of allowed CORS origins.
            Defaults to ["*"] for development.

    Returns:
        Configured FastAPI application.
    """
    if services is None:
        services = build_services()
    if scheduler is None:
        scheduler = build_scheduler(services, jobs)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if start_scheduler:
            scheduler.start()
        try:
            yield
        finally:
            scheduler.stop()
            await scheduler.wait_idle(timeout=shutdown_timeout)

    app = FastAPI(
        title="CronPilot API",
        description="Scheduled jobs and comment ingestion API",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    # Store collaborators in app state
    app.state.services = services
    app.state.scheduler = scheduler
    app.state.chat_service = ChatService(services.db, scheduler.runner, services.chat_model)

    @app.exception_handler(CronPilotError)
    async def handle_cronpilot_error(request: Request, exc: CronPilotError) -> JSONResponse:
        status_code = status_for_error(exc)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=status_code, content={"detail": exc.message})

    # Configure CORS
    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins or ["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["X-Conversation-Id"],
        )

    # Register API routers
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(job_routes.router, prefix="/api", tags=["jobs"])
    app.include_router(settings.router, prefix="/api", tags=["settings"])
    app.include_router(videos.router, prefix="/api", tags=["videos"])
    app.include_router(automations.router, prefix="/api", tags=["automations"])

    return app
