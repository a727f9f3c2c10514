"""
FastAPI dependency injection helpers for FASHIONSIM web interface.

Provides common dependencies for routes:
- The week commit orchestrator
- The constants catalog
"""

from fastapi import Request

from fashionsim.config.schema import FashionSimConfig
from fashionsim.engine.simulation import WeekCommitOrchestrator


def get_orchestrator(request: Request) -> WeekCommitOrchestrator:
    """Get the orchestrator bound to the application."""
    return request.app.state.orchestrator


def get_game_config(request: Request) -> FashionSimConfig:
    """Get the constants catalog the application runs with."""
    return request.app.state.orchestrator.config
