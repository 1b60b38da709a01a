"""
FastAPI application entrypoint for the Arnold Slack bridge.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from arnold.api.routes import router as api_router
from arnold.core.config import get_settings
from arnold.core.logging import configure_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Arnold Slack Backend",
        version="0.1.0",
        description=(
            "Links Slack users to Google Analytics and relays Slack events "
            "to the automation engine."
        ),
    )
    app.include_router(api_router)
    logger.info("OAuth callback: %s", settings.google.redirect_uri)
    return app


app = create_app()

__all__ = ["app", "create_app"]
