# Use postponed evaluation of annotations so type hints stay as strings at runtime.
from __future__ import annotations

# `FastAPI` exposes the locator as HTTP endpoints for a web UI.
from fastapi import FastAPI

from bikelocator.api.routes import router
# `LocatorService` runs one pipeline per request and shapes the result for the frontend.
from bikelocator.api.service import LocatorService
from bikelocator.config.models import AppConfig
from bikelocator.utils.logging import configure_logging


# Builds the FastAPI application from a typed config.
def create_app(config: AppConfig) -> FastAPI:
    # `logging.basicConfig(...)` is a no-op if handlers already exist (common in tests).
    configure_logging(config.logging)

    app = FastAPI(title=config.app.name)

    # Store the service on `app.state` so route handlers can access it without global variables.
    app.state.locator_service = LocatorService(config)

    app.include_router(router)
    return app
