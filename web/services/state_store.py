"""
SQL-backed state store for FASHIONSIM web interface.

Implements the fashionsim StateStore protocol on top of SQLAlchemy,
moving Pydantic domain records in and out of JSON text columns.
"""

from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from fashionsim.io.store import SessionNotFoundError, StoreError, apply_partial
from fashionsim.models.session import GameSession
from fashionsim.models.state import WeeklyState
from web.database.models import GameSessionRecord, WeeklyStateRecord
from web.database.session import get_db_context


class SqlStateStore:
    """Stores sessions and weekly states in a relational database.

    Each public method runs in its own transaction; commit_week writes
    the committed week, the next draft and the session in one.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    # ------------------------------------------------------------------
    # Record <-> model conversion
    # ------------------------------------------------------------------

    @staticmethod
    def _to_state(record: WeeklyStateRecord) -> WeeklyState:
        return WeeklyState.model_validate_json(record.state_json)

    @staticmethod
    def _to_session(record: GameSessionRecord) -> GameSession:
        return GameSession.model_validate_json(record.session_json)

    @staticmethod
    def _write_state(record: WeeklyStateRecord, state: WeeklyState) -> None:
        record.state_id = state.state_id
        record.session_id = state.session_id
        record.week_number = state.week_number
        record.is_committed = state.is_committed
        record.state_json = state.model_dump_json()

    @staticmethod
    def _write_session(record: GameSessionRecord, session: GameSession) -> None:
        record.session_id = session.session_id
        record.player_name = session.player_name
        record.current_week = session.current_week
        record.is_completed = session.is_completed
        record.session_json = session.model_dump_json()

    @staticmethod
    def _week_record(db: Session, session_id: str, week_number: int) -> Optional[WeeklyStateRecord]:
        return (
            db.query(WeeklyStateRecord)
            .filter(
                WeeklyStateRecord.session_id == session_id,
                WeeklyStateRecord.week_number == week_number,
            )
            .first()
        )

    @staticmethod
    def _session_record(db: Session, session_id: str) -> Optional[GameSessionRecord]:
        return db.query(GameSessionRecord).filter(GameSessionRecord.session_id == session_id).first()

    # ------------------------------------------------------------------
    # Weekly states
    # ------------------------------------------------------------------

    def get(self, session_id: str, week_number: int) -> Optional[WeeklyState]:
        with get_db_context(self.session_factory) as db:
            record = self._week_record(db, session_id, week_number)
            return self._to_state(record) if record else None

    def get_latest(self, session_id: str) -> Optional[WeeklyState]:
        with get_db_context(self.session_factory) as db:
            record = (
                db.query(WeeklyStateRecord)
                .filter(WeeklyStateRecord.session_id == session_id)
                .order_by(WeeklyStateRecord.week_number.desc())
                .first()
            )
            return self._to_state(record) if record else None

    def get_all(self, session_id: str) -> list[WeeklyState]:
        with get_db_context(self.session_factory) as db:
            records = (
                db.query(WeeklyStateRecord)
                .filter(WeeklyStateRecord.session_id == session_id)
                .order_by(WeeklyStateRecord.week_number)
                .all()
            )
            return [self._to_state(r) for r in records]

    def create(self, state: WeeklyState) -> WeeklyState:
        try:
            with get_db_context(self.session_factory) as db:
                record = WeeklyStateRecord()
                self._write_state(record, state)
                db.add(record)
        except IntegrityError as e:
            raise StoreError(
                f"Week {state.week_number} of {state.session_id} already exists"
            ) from e
        return state

    def update(self, state_id: str, partial: dict[str, Any]) -> WeeklyState:
        with get_db_context(self.session_factory) as db:
            record = db.query(WeeklyStateRecord).filter(WeeklyStateRecord.state_id == state_id).first()
            if record is None:
                raise StoreError(f"Unknown state id: {state_id}")
            updated = apply_partial(self._to_state(record), partial)
            self._write_state(record, updated)
            return updated

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_session(self, session: GameSession) -> GameSession:
        try:
            with get_db_context(self.session_factory) as db:
                record = GameSessionRecord()
                self._write_session(record, session)
                db.add(record)
        except IntegrityError as e:
            raise StoreError(f"Session {session.session_id} already exists") from e
        return session

    def get_session(self, session_id: str) -> Optional[GameSession]:
        with get_db_context(self.session_factory) as db:
            record = self._session_record(db, session_id)
            return self._to_session(record) if record else None

    def update_session(self, session_id: str, partial: dict[str, Any]) -> GameSession:
        with get_db_context(self.session_factory) as db:
            record = self._session_record(db, session_id)
            if record is None:
                raise SessionNotFoundError(session_id)
            data = self._to_session(record).model_dump()
            data.update(partial)
            updated = GameSession.model_validate(data)
            self._write_session(record, updated)
            return updated

    def list_sessions(self) -> list[GameSession]:
        with get_db_context(self.session_factory) as db:
            records = db.query(GameSessionRecord).order_by(GameSessionRecord.created_at).all()
            return [self._to_session(r) for r in records]

    def commit_week(
        self,
        committed: WeeklyState,
        next_state: Optional[WeeklyState],
        session: GameSession,
    ) -> None:
        try:
            with get_db_context(self.session_factory) as db:
                record = self._week_record(db, committed.session_id, committed.week_number)
                if record is None:
                    record = WeeklyStateRecord()
                    db.add(record)
                self._write_state(record, committed)

                if next_state is not None:
                    next_record = WeeklyStateRecord()
                    self._write_state(next_record, next_state)
                    db.add(next_record)

                session_record = self._session_record(db, session.session_id)
                if session_record is None:
                    raise SessionNotFoundError(session.session_id)
                self._write_session(session_record, session)
        except IntegrityError as e:
            raise StoreError(f"Failed to commit week {committed.week_number}: {e}") from e
