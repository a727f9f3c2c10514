"""
Game state persistence for FASHIONSIM.

A StateStore keeps game sessions and their weekly states. The
settlement engine only needs a simple keyed store; the one operation
that must be atomic is commit_week, which writes the committed week,
the next draft and the session together (or nothing at all).

Implementations:
- InMemoryStateStore: process-local, for tests and the web app default
- JsonFileStateStore: one JSON document per session, written atomically
"""

import copy
import os
import threading
from pathlib import Path
from typing import Any, Optional, Protocol

from pydantic import BaseModel, Field, ValidationError

from fashionsim import __version__
from fashionsim.models.session import GameSession
from fashionsim.models.state import WeeklyState


class StoreError(Exception):
    """Exception raised when a store cannot read or write."""

    pass


class CommittedStateError(StoreError):
    """Raised when writing to a week that is already committed."""

    def __init__(self, state: WeeklyState):
        self.state_id = state.state_id
        super().__init__(
            f"Week {state.week_number} of session {state.session_id} is committed and cannot be changed"
        )


class SessionNotFoundError(LookupError):
    """Raised when a game session does not exist."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Game session not found: {session_id}")


class WeekNotFoundError(LookupError):
    """Raised when a week of a session does not exist."""

    def __init__(self, session_id: str, week_number: Optional[int] = None):
        self.session_id = session_id
        self.week_number = week_number
        where = f"week {week_number}" if week_number is not None else "any week"
        super().__init__(f"No state for {where} of session {session_id}")


def get_default_data_dir() -> Path:
    """Get the default directory for session files.

    Returns:
        Path to the sessions directory (not created)
    """
    # XDG_DATA_HOME on Linux/macOS
    if os.name == "posix":
        xdg_data = os.environ.get("XDG_DATA_HOME", "")
        if xdg_data:
            return Path(xdg_data) / "fashionsim" / "sessions"
        return Path.home() / ".local" / "share" / "fashionsim" / "sessions"

    # Windows: use AppData
    app_data = os.environ.get("APPDATA", "")
    if app_data:
        return Path(app_data) / "fashionsim" / "sessions"
    return Path.home() / ".fashionsim" / "sessions"


class StateStore(Protocol):
    """Persistence provider for sessions and weekly states."""

    def get(self, session_id: str, week_number: int) -> Optional[WeeklyState]: ...

    def get_latest(self, session_id: str) -> Optional[WeeklyState]: ...

    def get_all(self, session_id: str) -> list[WeeklyState]: ...

    def create(self, state: WeeklyState) -> WeeklyState: ...

    def update(self, state_id: str, partial: dict[str, Any]) -> WeeklyState: ...

    def create_session(self, session: GameSession) -> GameSession: ...

    def get_session(self, session_id: str) -> Optional[GameSession]: ...

    def update_session(self, session_id: str, partial: dict[str, Any]) -> GameSession: ...

    def list_sessions(self) -> list[GameSession]: ...

    def commit_week(
        self,
        committed: WeeklyState,
        next_state: Optional[WeeklyState],
        session: GameSession,
    ) -> None: ...


def apply_partial(state: WeeklyState, partial: dict[str, Any]) -> WeeklyState:
    """Apply a partial update, re-validating the result.

    Raises:
        CommittedStateError: If the state is already committed
    """
    if state.is_committed:
        raise CommittedStateError(state)
    data = state.model_dump()
    data.update(partial)
    return WeeklyState.model_validate(data)


class InMemoryStateStore:
    """Keeps everything in process memory."""

    def __init__(self) -> None:
        self._sessions: dict[str, GameSession] = {}
        self._states: dict[str, dict[int, WeeklyState]] = {}
        self._lock = threading.RLock()

    def _weeks(self, session_id: str) -> dict[int, WeeklyState]:
        return self._states.setdefault(session_id, {})

    def get(self, session_id: str, week_number: int) -> Optional[WeeklyState]:
        with self._lock:
            return self._states.get(session_id, {}).get(week_number)

    def get_latest(self, session_id: str) -> Optional[WeeklyState]:
        with self._lock:
            weeks = self._states.get(session_id, {})
            return weeks[max(weeks)] if weeks else None

    def get_all(self, session_id: str) -> list[WeeklyState]:
        with self._lock:
            weeks = self._states.get(session_id, {})
            return [weeks[w] for w in sorted(weeks)]

    def create(self, state: WeeklyState) -> WeeklyState:
        with self._lock:
            weeks = self._weeks(state.session_id)
            if state.week_number in weeks:
                raise StoreError(
                    f"Week {state.week_number} of {state.session_id} already exists"
                )
            weeks[state.week_number] = state
            return state

    def _find(self, state_id: str) -> WeeklyState:
        for weeks in self._states.values():
            for state in weeks.values():
                if state.state_id == state_id:
                    return state
        raise StoreError(f"Unknown state id: {state_id}")

    def update(self, state_id: str, partial: dict[str, Any]) -> WeeklyState:
        with self._lock:
            updated = apply_partial(self._find(state_id), partial)
            self._weeks(updated.session_id)[updated.week_number] = updated
            return updated

    def create_session(self, session: GameSession) -> GameSession:
        with self._lock:
            if session.session_id in self._sessions:
                raise StoreError(f"Session {session.session_id} already exists")
            self._sessions[session.session_id] = session
            return session

    def get_session(self, session_id: str) -> Optional[GameSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def update_session(self, session_id: str, partial: dict[str, Any]) -> GameSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            data = session.model_dump()
            data.update(partial)
            updated = GameSession.model_validate(data)
            self._sessions[session_id] = updated
            return updated

    def list_sessions(self) -> list[GameSession]:
        with self._lock:
            return sorted(self._sessions.values(), key=lambda s: s.created_at)

    def commit_week(
        self,
        committed: WeeklyState,
        next_state: Optional[WeeklyState],
        session: GameSession,
    ) -> None:
        with self._lock:
            weeks = self._weeks(committed.session_id)
            if next_state is not None and next_state.week_number in weeks:
                raise StoreError(
                    f"Week {next_state.week_number} of {committed.session_id} already exists"
                )
            weeks[committed.week_number] = committed
            if next_state is not None:
                weeks[next_state.week_number] = next_state
            self._sessions[session.session_id] = session


class SessionDocument(BaseModel):
    """On-disk form of one session and all its weeks."""

    version: str = Field(default=__version__)
    session: GameSession
    states: list[WeeklyState] = Field(default_factory=list)


class JsonFileStateStore:
    """Stores each session as one JSON file in a directory.

    Every write replaces the whole document atomically (temp file, then
    rename), so a commit is persisted completely or not at all.
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self._lock = threading.RLock()

    def _path(self, session_id: str) -> Path:
        return self.directory / f"{session_id}.json"

    def _load(self, session_id: str) -> Optional[SessionDocument]:
        path = self._path(session_id)
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                return SessionDocument.model_validate_json(f.read())
        except (OSError, ValidationError) as e:
            raise StoreError(f"Failed to load session {session_id}: {e}") from e

    def _require(self, session_id: str) -> SessionDocument:
        document = self._load(session_id)
        if document is None:
            raise SessionNotFoundError(session_id)
        return document

    def _save(self, document: SessionDocument) -> None:
        path = self._path(document.session.session_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)

            # Write atomically by writing to temp file first
            temp_path = path.with_suffix(".tmp")
            with open(temp_path, "w", encoding="utf-8") as f:
                f.write(document.model_dump_json(indent=2))
            temp_path.replace(path)
        except OSError as e:
            raise StoreError(f"Failed to save session: {e}") from e

    @staticmethod
    def _sorted(states: list[WeeklyState]) -> list[WeeklyState]:
        return sorted(states, key=lambda s: s.week_number)

    def get(self, session_id: str, week_number: int) -> Optional[WeeklyState]:
        with self._lock:
            document = self._load(session_id)
            if document is None:
                return None
            for state in document.states:
                if state.week_number == week_number:
                    return state
            return None

    def get_latest(self, session_id: str) -> Optional[WeeklyState]:
        states = self.get_all(session_id)
        return states[-1] if states else None

    def get_all(self, session_id: str) -> list[WeeklyState]:
        with self._lock:
            document = self._load(session_id)
            return self._sorted(document.states) if document else []

    def create(self, state: WeeklyState) -> WeeklyState:
        with self._lock:
            document = self._require(state.session_id)
            if any(s.week_number == state.week_number for s in document.states):
                raise StoreError(
                    f"Week {state.week_number} of {state.session_id} already exists"
                )
            document.states = self._sorted(document.states + [state])
            self._save(document)
            return state

    def update(self, state_id: str, partial: dict[str, Any]) -> WeeklyState:
        with self._lock:
            for path in sorted(self.directory.glob("*.json")):
                document = self._load(path.stem)
                if document is None:
                    continue
                for index, state in enumerate(document.states):
                    if state.state_id == state_id:
                        updated = apply_partial(state, partial)
                        document.states[index] = updated
                        self._save(document)
                        return updated
            raise StoreError(f"Unknown state id: {state_id}")

    def create_session(self, session: GameSession) -> GameSession:
        with self._lock:
            if self._path(session.session_id).exists():
                raise StoreError(f"Session {session.session_id} already exists")
            self._save(SessionDocument(session=session))
            return session

    def get_session(self, session_id: str) -> Optional[GameSession]:
        with self._lock:
            document = self._load(session_id)
            return document.session if document else None

    def update_session(self, session_id: str, partial: dict[str, Any]) -> GameSession:
        with self._lock:
            document = self._require(session_id)
            data = document.session.model_dump()
            data.update(partial)
            document.session = GameSession.model_validate(data)
            self._save(document)
            return document.session

    def list_sessions(self) -> list[GameSession]:
        with self._lock:
            if not self.directory.exists():
                return []
            sessions = []
            for path in self.directory.glob("*.json"):
                document = self._load(path.stem)
                if document is not None:
                    sessions.append(document.session)
            return sorted(sessions, key=lambda s: s.created_at)

    def commit_week(
        self,
        committed: WeeklyState,
        next_state: Optional[WeeklyState],
        session: GameSession,
    ) -> None:
        with self._lock:
            document = self._require(committed.session_id)
            states = [s for s in document.states if s.week_number != committed.week_number]
            states.append(committed)
            if next_state is not None:
                if any(s.week_number == next_state.week_number for s in states):
                    raise StoreError(
                        f"Week {next_state.week_number} of {committed.session_id} already exists"
                    )
                states.append(next_state)
            document = SessionDocument(
                version=document.version, session=copy.deepcopy(session), states=self._sorted(states)
            )
            self._save(document)
