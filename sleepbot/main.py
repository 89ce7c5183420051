"""
FastAPI application serving the interactive Fitbit setup callback.
"""

from __future__ import annotations

from fastapi import FastAPI

from sleepbot.api.routes import router as setup_router
from sleepbot.core.config import get_settings
from sleepbot.core.logging import configure_logging


def create_app() -> FastAPI:
    """Factory for the setup FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="sleepbot setup",
        version="0.1.0",
        description="One-time OAuth2 PKCE authorization for the Fitbit sleep bot.",
    )
    app.include_router(setup_router)
    return app


app = create_app()

__all__ = ["app", "create_app"]
