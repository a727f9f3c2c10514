"""Business logic services for FASHIONSIM web interface."""

from web.services.state_store import SqlStateStore

__all__ = ["SqlStateStore"]
