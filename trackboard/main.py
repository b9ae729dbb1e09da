"""
FastAPI application entrypoint for the Trackboard dashboard backend.
"""

from __future__ import annotations

from fastapi import FastAPI

from trackboard.api.routes import router as api_router
from trackboard.core.config import get_settings
from trackboard.core.logging import configure_logging


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Trackboard",
        version="0.1.0",
        description="Hubstaff attendance and activity data for the project dashboard.",
    )
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
