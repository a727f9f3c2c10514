"""Database models and session management for FASHIONSIM web interface."""

from web.database.models import Base, GameSessionRecord, WeeklyStateRecord
from web.database.session import build_engine, get_db_context, init_db

__all__ = [
    "Base",
    "GameSessionRecord",
    "WeeklyStateRecord",
    "build_engine",
    "get_db_context",
    "init_db",
]
