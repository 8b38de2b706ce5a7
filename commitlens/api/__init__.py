"""CommitLens REST API — FastAPI application factory."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from commitlens.api.deps import dispose_engine, get_aggregate_dao, init_session_factory
from commitlens.api.errors import register_error_handlers
from commitlens.api.middleware.request_id import RequestIDMiddleware
from commitlens.api.routers import categories, commits, contributors, metrics, reports
from commitlens.core.logging import setup_logging
from commitlens.scheduler import create_scheduler

log = structlog.get_logger("commitlens.api")


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: init DB, start aggregate refresh. Shutdown: stop it, dispose engine."""
    factory = init_session_factory()
    scheduler = create_scheduler(factory, aggregate_dao=get_aggregate_dao())
    await scheduler.start()
    log.info("app.started")
    yield
    await scheduler.stop()
    await dispose_engine()


def create_app(*, lifespan: bool = True) -> FastAPI:
    """Build and return the FastAPI application.

    ``lifespan=False`` skips engine and scheduler setup, for tests that
    inject their own session factory.
    """
    setup_logging()

    app = FastAPI(
        title="CommitLens",
        docs_url="/api/v1/docs",
        openapi_url="/api/v1/openapi.json",
        lifespan=_lifespan if lifespan else None,
    )

    register_error_handlers(app)

    cors_origins = os.environ.get("COMMITLENS_CORS_ORIGINS", "http://localhost:3000")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in cors_origins.split(",")],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health", tags=["ops"])
    async def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(metrics.router, prefix="/api/v1/metrics", tags=["metrics"])
    app.include_router(contributors.router, prefix="/api/v1", tags=["contributors"])
    app.include_router(commits.router, prefix="/api/v1/commits", tags=["commits"])
    app.include_router(categories.router, prefix="/api/v1/categories", tags=["categories"])
    app.include_router(reports.router, prefix="/api/v1", tags=["reports"])

    return app
