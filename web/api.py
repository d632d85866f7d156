"""FastAPI web application for the tournament bracket service."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import AppConfig
from tournaments import TournamentAPI, TournamentDatabaseManager, TournamentManager
from web.endpoints.system import router as system_router
from web.endpoints.tournaments import router as tournaments_router

logger: logging.Logger = logging.getLogger(__name__)


def create_app(config: AppConfig | None = None) -> FastAPI:
    """Build the application; the database schema is created on startup."""
    config = config or AppConfig()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Manage application lifespan - startup and shutdown."""
        db = TournamentDatabaseManager(config.database.path)
        manager = TournamentManager(db, bracket_config=config.brackets)
        app.state.tournament_api = TournamentAPI(manager)
        logger.info(f"Tournament API ready (database: {config.database.path})")

        yield

        logger.info("Tournament API shutting down")

    app: FastAPI = FastAPI(
        title="Tournament Bracket Service",
        description="Registration, bracket generation and match progression",
        version="1.0.0",
        lifespan=lifespan,
    )

    if config.server.allowed_origins:
        logger.info(f"Setting CORS allowed origins: {config.server.allowed_origins}")

        # Production: Use specific origins
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.server.allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        logger.info("No allowed origins configured, using development CORS settings")

        # Development: Allow any localhost/127.0.0.1
        app.add_middleware(
            CORSMiddleware,
            allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(system_router)
    app.include_router(tournaments_router)

    return app
