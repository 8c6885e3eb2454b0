"""Database infrastructure helpers (engine, sessions, migrations)."""

from .base import Base, UTCDateTime
from .session import get_engine, get_session, init_db, session_scope

__all__ = ["Base", "UTCDateTime", "get_engine", "get_session", "init_db", "session_scope"]
