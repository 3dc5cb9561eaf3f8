"""Database utilities - engine and session."""

from src.staffing.core.db.engine import dispose_engine, get_engine
from src.staffing.core.db.session import get_session, get_session_factory

__all__ = [
    "dispose_engine",
    "get_engine",
    "get_session",
    "get_session_factory",
]
