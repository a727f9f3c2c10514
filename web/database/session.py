"""
Database session management for FASHIONSIM web interface.

Provides the SQLAlchemy engine, session factory and a transactional
session context for the SQL state store.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from web.config import get_settings
from web.database.models import Base

# Engine and session factory (initialized lazily)
_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine, preparing SQLite file locations."""
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo)

    if database_url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection so every session sees the same in-memory database
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo,
        )

    # Ensure data directory exists for SQLite
    db_path = database_url.replace("sqlite:///", "")
    if db_path.startswith("./"):
        db_path = db_path[2:]
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(
        database_url,
        connect_args={"check_same_thread": False},  # Needed for SQLite
        echo=echo,
    )


def get_engine() -> Engine:
    """Get or create the SQLAlchemy engine."""
    global _engine
    if _engine is None:
        config = get_settings()
        _engine = build_engine(config.database_url, echo=config.debug)
    return _engine


def get_session_factory() -> sessionmaker:
    """Get or create the session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=get_engine(),
        )
    return _SessionLocal


def init_db(engine: Optional[Engine] = None) -> None:
    """Initialize the database by creating all tables."""
    Base.metadata.create_all(bind=engine or get_engine())


@contextmanager
def get_db_context(factory: Optional[sessionmaker] = None) -> Generator[Session, None, None]:
    """Context manager for one database transaction.

    Usage:
        with get_db_context() as db:
            records = db.query(GameSessionRecord).all()
    """
    SessionLocal = factory or get_session_factory()
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
