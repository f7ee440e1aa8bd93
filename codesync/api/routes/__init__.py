# codesync/api/routes/__init__.py
"""API route modules."""

from codesync.api.routes.health import router as health_router
from codesync.api.routes.progress import router as progress_router
from codesync.api.routes.repositories import router as repositories_router
from codesync.api.routes.sync import router as sync_router
from codesync.api.routes.webhook import router as webhook_router

__all__ = [
    "health_router",
    "progress_router",
    "repositories_router",
    "sync_router",
    "webhook_router",
]
