"""
FastAPI application for FASHIONSIM web interface.

This is the main entry point for the web application.
Run with: uvicorn web.app:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fashionsim.config.schema import FashionSimConfig, get_default_config
from fashionsim.engine.intake import IntakeError
from fashionsim.engine.procurement import ProcurementError
from fashionsim.engine.production import ScheduleError
from fashionsim.engine.simulation import (
    CommitInProgressError,
    WeekAlreadyCommittedError,
    WeekCommitOrchestrator,
)
from fashionsim.io.store import (
    CommittedStateError,
    SessionNotFoundError,
    StateStore,
    StoreError,
    WeekNotFoundError,
)
from web.config import WebConfig, get_settings
from web.database.session import get_session_factory, init_db
from web.services.state_store import SqlStateStore

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    SessionNotFoundError: 404,
    WeekNotFoundError: 404,
    WeekAlreadyCommittedError: 409,
    CommitInProgressError: 409,
    CommittedStateError: 409,
    IntakeError: 422,
    ProcurementError: 422,
    ScheduleError: 422,
    StoreError: 500,
}


def _load_game_config(settings: WebConfig) -> FashionSimConfig:
    if settings.constants_path is not None:
        return FashionSimConfig.from_file(settings.constants_path)
    return get_default_config()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup: bind the database store unless one was injected
    if app.state.orchestrator is None:
        init_db()
        app.state.orchestrator = WeekCommitOrchestrator(
            SqlStateStore(get_session_factory()), app.state.game_config
        )
    yield
    # Shutdown (nothing to do for now)


def register_exception_handlers(app: FastAPI) -> None:
    """Map engine errors to HTTP status codes."""

    async def handle_error(request: Request, exc: Exception) -> JSONResponse:
        code = next(
            (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
            500,
        )
        if code >= 500:
            logger.error("Request %s failed: %s", request.url.path, exc)
        return JSONResponse(status_code=code, content={"detail": str(exc)})

    for error_type in ERROR_STATUS:
        app.add_exception_handler(error_type, handle_error)


def create_app(
    settings: Optional[WebConfig] = None,
    store: Optional[StateStore] = None,
) -> FastAPI:
    """Application factory for creating the FastAPI app.

    Args:
        settings: Web settings (read from the environment if None)
        store: State store to use; a SQL store is bound at startup if None
    """
    config = settings or get_settings()

    app = FastAPI(
        title=config.app_name,
        version=config.app_version,
        description="A fashion retail season simulation",
        lifespan=lifespan,
    )

    game_config = _load_game_config(config)
    app.state.game_config = game_config
    app.state.orchestrator = WeekCommitOrchestrator(store, game_config) if store is not None else None

    register_exception_handlers(app)

    # Import and include routers
    from web.routes.api import router as api_router

    app.include_router(api_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint for monitoring."""
        return {"status": "healthy", "app": "fashionsim"}

    return app


# Create the application instance
app = create_app()
