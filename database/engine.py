"""
Database Persistence Layer - Core Engine.

============================================================
PURPOSE
============================================================
Async SQLAlchemy setup for the assessment store.

- Database URL from environment (.env supported)
- Async engine and session factory
- Explicit session scope with rollback on failure

The heritage risk engine only depends on the abstract
repository interface; this module backs the SQLAlchemy
implementation of it.

============================================================
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator, Optional

from dotenv import load_dotenv
from sqlalchemy import DateTime, text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///heritage_risk.db"


# =============================================================
# DECLARATIVE BASE
# =============================================================


class Base(DeclarativeBase):
    """
    Declarative base for all ORM models.
    
    All timestamps are timezone-aware.
    """
    
    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }


class DatabaseConnectionError(Exception):
    """Raised when the database cannot be reached."""
    pass


# =============================================================
# DATABASE ENGINE
# =============================================================


def get_database_url() -> str:
    """Get database URL from environment."""
    url = os.getenv("DATABASE_URL")
    
    if url and url.startswith("postgresql://"):
        # Async driver required
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    
    if not url:
        url = DEFAULT_DATABASE_URL
        logger.warning(f"DATABASE_URL not set, using default: {url}")
    
    return url


def create_database_engine(
    database_url: Optional[str] = None,
    echo: bool = False,
) -> AsyncEngine:
    """
    Create an async SQLAlchemy engine.
    
    In-memory SQLite URLs share a single connection so that
    every session sees the same database.
    
    Args:
        database_url: Overrides the environment URL
        echo: Log SQL statements
        
    Returns:
        AsyncEngine
    """
    database_url = database_url or get_database_url()
    
    logger.info(f"Creating database engine for: {database_url.split('@')[-1]}")
    
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        return create_async_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    
    return create_async_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
    )


def get_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to `engine`."""
    return async_sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


# =============================================================
# SESSION MANAGEMENT
# =============================================================


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Async context manager for database sessions.
    
    Usage:
        async with session_scope(factory) as session:
            repository = SqlAlchemyAssessmentRepository(session)
            ...
    
    On exception:
        - Rolls back
        - Re-raises the exception
    """
    session = factory()
    try:
        yield session
    except SQLAlchemyError as e:
        logger.error(f"Database error, rolling back: {e}")
        await session.rollback()
        raise
    finally:
        await session.close()


# =============================================================
# DATABASE INITIALIZATION
# =============================================================


async def verify_database_connection(engine: AsyncEngine) -> bool:
    """
    Verify database connection is working.
    
    Raises:
        DatabaseConnectionError if connection fails
    """
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
            logger.info("Database connection verified successfully")
            return True
    except OperationalError as e:
        logger.error(f"Database connection failed: {e}")
        raise DatabaseConnectionError(f"Cannot connect to database: {e}") from e


async def create_all_tables(engine: AsyncEngine) -> None:
    """Create all tables registered on Base."""
    # Registers the heritage risk tables on Base.metadata
    import heritage_risk.models  # noqa: F401
    
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")
