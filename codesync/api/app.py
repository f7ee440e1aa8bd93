# codesync/api/app.py
"""FastAPI application for the codesync API."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from codesync.api.dependencies import get_codesync_version
from codesync.api.routes import (
    health_router,
    progress_router,
    repositories_router,
    sync_router,
    webhook_router,
)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance.
    """
    app = FastAPI(
        title="codesync API",
        description=(
            "Keeps a vector index in sync with source repositories. "
            "Receive push webhooks, trigger syncs and poll their progress."
        ),
        version=get_codesync_version(),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(sync_router)
    app.include_router(progress_router)
    app.include_router(webhook_router)
    app.include_router(repositories_router)

    return app


__all__ = ["create_app"]
