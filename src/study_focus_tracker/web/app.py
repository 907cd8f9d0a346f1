"""
FastAPI application for the Study Focus Tracker dashboard.

PURPOSE: Application factory and server runner.
AI CONTEXT: Creates the app with all routes registered.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from ..__version__ import __version__
from ..config import Config
from .routes import router

__all__ = ["create_app", "run_dashboard"]

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:  # noqa: ARG001
    """
    Log dashboard startup and shutdown.

    Args:
        app: The FastAPI application instance (provided by FastAPI).

    Yields:
        None. Control returns to FastAPI to handle requests.
    """
    logger.info(
        "Study Focus Tracker dashboard starting (v%s, data in %s)",
        __version__,
        Config.get_storage_dir(),
    )
    yield
    logger.info("Study Focus Tracker dashboard shutting down")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI dashboard application.

    Business context: The dashboard is the desktop counterpart of the
    extension popup: the same statistics, score and timeline, plus
    downloads of every report format.

    Returns:
        FastAPI application with the dashboard (/), JSON API (/api/*),
        chart (/charts/*) and export (/export) routes registered.

    Example:
        >>> from fastapi.testclient import TestClient
        >>> client = TestClient(create_app())
        >>> client.get('/api/stats').json()['success']
        True
    """
    app = FastAPI(
        title="Study Focus Tracker",
        description="Focus statistics, quality scores and reports for video study",
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(router)
    return app


def run_dashboard(
    host: str = "127.0.0.1",
    port: int = 8000,
    reload: bool = False,
    log_level: str = "info",
) -> None:
    """
    Launch the dashboard server.

    Starts uvicorn with the application factory, so every worker builds
    its own app instance.

    Args:
        host: Interface to bind. '127.0.0.1' keeps the dashboard local.
        port: TCP port. Default 8000.
        reload: Auto-reload on code changes (development only).
        log_level: Uvicorn log level.

    Returns:
        None. Blocks until the server is stopped (Ctrl+C).

    Raises:
        OSError: If the port is already in use or the host is invalid.
    """
    uvicorn.run(
        "study_focus_tracker.web.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


if __name__ == "__main__":
    run_dashboard()
