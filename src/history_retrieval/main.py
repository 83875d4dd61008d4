"""
Application Entry Point

This module defines the FastAPI application instance, registers all routers,
configures logging and global exception handling, and provides a test-friendly
application factory.

Design Goals
------------
- Deterministic startup
- Centralized router registration
- Retryable errors for a corpus that could not be built
- Global exception safety net
- Test-friendly via create_app()
"""

from __future__ import annotations

import logging
from fastapi import FastAPI

from .config import settings
from .core.errors import (
    CorpusBuildError,
    corpus_build_exception_handler,
    unhandled_exception_handler,
)
from .core.logging import configure_logging
from .store.session import get_async_engine

from .api import (
    admin_routes,
    health_routes,
    search_routes,
)


logger = logging.getLogger("retrieval.app")


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    This factory pattern allows:
    - Clean test instantiation
    - Controlled dependency overrides in pytest

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """
    configure_logging(settings.log_level)

    app = FastAPI(
        title="history-retrieval",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # --------------------------------------------------------------
    # Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(CorpusBuildError, corpus_build_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(search_routes.router)
    app.include_router(admin_routes.router)

    # --------------------------------------------------------------
    # Startup Hook
    # --------------------------------------------------------------

    @app.on_event("startup")
    async def _startup() -> None:
        """
        Report the effective configuration. The corpus itself is built
        lazily on the first search.
        """
        logger.info("Starting history-retrieval")

        if settings.gemini_api_key is None:
            logger.warning("GEMINI_API_KEY not set; semantic search will return no matches")

        logger.info(
            "Document store: %s",
            "postgresql" if settings.database_url else "in-memory seed data",
        )

    # --------------------------------------------------------------
    # Shutdown Hook
    # --------------------------------------------------------------

    @app.on_event("shutdown")
    async def _shutdown_cleanup() -> None:
        """
        Close pooled database connections, if any were opened.
        """
        if settings.database_url:
            await get_async_engine().dispose()

        logger.info("Shutting down history-retrieval")

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn/Gunicorn)
# ---------------------------------------------------------------------

app = create_app()
