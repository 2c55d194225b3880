"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures exception handlers, and lifespan events.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse

from heroes_portal.adapters.database import Database, run_migrations
from heroes_portal.adapters.repository import PostgresTokenStore
from heroes_portal.adapters.sweeper import TokenSweeper
from heroes_portal.api.dependencies import get_database
from heroes_portal.api.errors import register_exception_handlers
from heroes_portal.api.health import health_response
from heroes_portal.api.heroes import router as heroes_router
from heroes_portal.api.routes import router as users_router
from heroes_portal.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "users",
        "description": "Pensioner and beneficiary signup, login and logout",
    },
    {
        "name": "heroes",
        "description": "Account holder profile lookup",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates the database gateway (connection pool) on startup
    - Runs migrations on startup
    - Starts the hourly expired-token sweeper
    - Stops the sweeper and closes the pool on shutdown
    """
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    logger.info("Starting application...")
    logger.info("Connecting to database...")
    database = Database.from_settings(settings)

    logger.info("Running database migrations...")
    run_migrations(database)

    # Store gateway in app state for dependency injection
    app.state.database = database

    sweeper = TokenSweeper(
        PostgresTokenStore(database), interval_seconds=settings.token_sweep_interval_seconds
    )
    sweeper_task = sweeper.start()

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    sweeper_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper_task
    database.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="heroes-portal",
    description="Pension administration API - pensioner and beneficiary accounts",
    version="1.0.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

register_exception_handlers(app)
app.include_router(users_router)
app.include_router(heroes_router)


@app.get("/health")
def health_check(
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """
    Health check endpoint with database validation.

    Returns 200 with pool metrics if the database answers, 503 otherwise.
    """
    return health_response(database, settings.environment)
