"""
File I/O for FASHIONSIM.

This module handles:
- Decision files (YAML/JSON)
- Game state persistence (in-memory and JSON file stores)
"""

from fashionsim.io.decisions_io import (
    DecisionsParseError,
    decisions_from_dict,
    parse_decisions,
    write_decisions,
)
from fashionsim.io.store import (
    CommittedStateError,
    InMemoryStateStore,
    JsonFileStateStore,
    SessionDocument,
    SessionNotFoundError,
    StateStore,
    StoreError,
    WeekNotFoundError,
    apply_partial,
    get_default_data_dir,
)

__all__ = [
    # Decisions
    "DecisionsParseError",
    "decisions_from_dict",
    "parse_decisions",
    "write_decisions",
    # Stores
    "StateStore",
    "StoreError",
    "CommittedStateError",
    "SessionNotFoundError",
    "WeekNotFoundError",
    "SessionDocument",
    "InMemoryStateStore",
    "JsonFileStateStore",
    "apply_partial",
    "get_default_data_dir",
]
