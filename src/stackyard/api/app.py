"""FastAPI app entrypoint."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from stackyard.api.deps import get_settings, shutdown_executors
from stackyard.api.errors import register_error_handlers
from stackyard.api.routes.projects import router as projects_router
from stackyard.log import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    del app
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info(
        "Managing projects in %s, repositories in %s",
        settings.workspace.projects_dir,
        settings.workspace.repositories_dir,
    )
    yield
    shutdown_executors()


def create_app() -> FastAPI:
    app = FastAPI(title="Stackyard API", version="0.1.0", lifespan=lifespan)
    register_error_handlers(app)
    app.include_router(projects_router)

    @app.get("/health", tags=["system"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(app, host=settings.server.host, port=settings.server.port, reload=False)
