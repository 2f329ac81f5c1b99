"""FastAPI application factory for the DCA control API."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from dca_bot.api.routes import actions, api
from dca_bot.scheduler import DCAScheduler


def create_api_app(
    scheduler: DCAScheduler | None = None, lifespan: Any = None
) -> FastAPI:
    """Create the control API.

    Args:
        scheduler: Scheduler the routes drive. main.py sets it on app.state
            inside the lifespan instead, so it may be None here.
        lifespan: Optional async context manager for startup/shutdown.

    Returns:
        Configured FastAPI application with read and action routers.
    """
    app = FastAPI(title="DCA Swap Engine", lifespan=lifespan)
    app.state.scheduler = scheduler

    app.include_router(api.router, prefix="/api")
    app.include_router(actions.router, prefix="/api")

    return app
