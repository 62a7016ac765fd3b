"""Database connections package."""

from newsdesk.db.postgres import async_session, check_connection, engine, get_session, init_db

__all__ = ["get_session", "init_db", "engine", "async_session", "check_connection"]
