"""
Database Package.

Async SQLAlchemy engine, session factory and declarative base
used by the SQLAlchemy assessment repository.
"""

from .engine import (
    Base,
    DatabaseConnectionError,
    create_all_tables,
    create_database_engine,
    get_database_url,
    get_session_factory,
    session_scope,
    verify_database_connection,
)

__all__ = [
    "Base",
    "DatabaseConnectionError",
    "create_all_tables",
    "create_database_engine",
    "get_database_url",
    "get_session_factory",
    "session_scope",
    "verify_database_connection",
]
