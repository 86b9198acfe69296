"""Database module for the shortlink service."""
from shortlinks.db.base import create_engine, create_session_factory, create_tables
from shortlinks.db.session import SessionManager

__all__ = [
    "create_engine",
    "create_session_factory",
    "create_tables",
    "SessionManager",
]
