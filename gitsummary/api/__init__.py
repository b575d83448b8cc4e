"""gitsummary REST API — FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gitsummary.api.deps import (
    close_clients,
    dispose_engine,
    get_job_coordinator,
    get_summarizer_runner,
    init_session_factory,
    set_scheduler,
)
from gitsummary.api.errors import register_error_handlers
from gitsummary.api.middleware.request_id import RequestIDMiddleware
from gitsummary.api.routers import authors, commits, exports, jobs, summaries
from gitsummary.core.config import get_settings
from gitsummary.core.logging import setup_logging
from gitsummary.scheduler import create_scheduler

log = structlog.get_logger("gitsummary.api")


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: init DB, start the summarizer loop. Shutdown: stop, drain, dispose."""
    settings = get_settings()
    factory = init_session_factory()

    scheduler = None
    if settings.auto_summarize:
        scheduler = create_scheduler(
            factory,
            summarizer_runner=get_summarizer_runner(),
            summarize_interval=settings.summarize_interval,
        )
        await scheduler.start()
        set_scheduler(scheduler)
    log.info("app.started", auto_summarize=settings.auto_summarize)

    yield

    if scheduler is not None:
        set_scheduler(None)
        await scheduler.stop()
    await get_job_coordinator().wait_dispatched()
    await close_clients()
    await dispose_engine()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    setup_logging()
    settings = get_settings()

    app = FastAPI(
        title="gitsummary",
        docs_url="/api/v1/docs",
        openapi_url="/api/v1/openapi.json",
        lifespan=_lifespan,
    )

    register_error_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health", tags=["ops"])
    async def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(jobs.router, prefix="/api/v1/jobs", tags=["jobs"])
    app.include_router(commits.router, prefix="/api/v1/commits", tags=["commits"])
    app.include_router(authors.router, prefix="/api/v1/authors", tags=["authors"])
    app.include_router(summaries.router, prefix="/api/v1/summaries", tags=["summaries"])
    app.include_router(exports.router, prefix="/api/v1/exports", tags=["exports"])

    return app
