"""
SQLAlchemy models for FASHIONSIM web interface.

These models store game sessions and their weekly states in SQLite.
The domain records (GameSession, WeeklyState) are serialized as JSON
using Pydantic's built-in serialization; a few fields are
denormalized into columns for lookups.
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class GameSessionRecord(Base):
    """Persistent game session."""

    __tablename__ = "game_sessions"

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    session_id: str = Column(String(64), unique=True, nullable=False, index=True)
    player_name: str = Column(String(100), default="")

    # Serialized fashionsim.models.session.GameSession
    session_json: str = Column(Text, nullable=False)

    # Denormalized metadata for quick queries
    current_week: int = Column(Integer, default=1)
    is_completed: bool = Column(Boolean, default=False)

    created_at: datetime = Column(DateTime, default=_utcnow)
    updated_at: datetime = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return (
            f"<GameSessionRecord(id={self.id}, session_id={self.session_id}, "
            f"player={self.player_name}, week={self.current_week})>"
        )


class WeeklyStateRecord(Base):
    """One week of one game, draft or committed."""

    __tablename__ = "weekly_states"
    __table_args__ = (UniqueConstraint("session_id", "week_number", name="uq_session_week"),)

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    state_id: str = Column(String(64), unique=True, nullable=False, index=True)
    session_id: str = Column(String(64), nullable=False, index=True)
    week_number: int = Column(Integer, nullable=False)
    is_committed: bool = Column(Boolean, default=False)

    # Serialized fashionsim.models.state.WeeklyState
    state_json: str = Column(Text, nullable=False)

    updated_at: datetime = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return (
            f"<WeeklyStateRecord(session={self.session_id}, week={self.week_number}, "
            f"committed={self.is_committed})>"
        )
