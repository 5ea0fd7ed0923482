"""Database engine and session configuration for ORM models."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.exc import OperationalError

from core.config import DATABASE_URL, USER_DATABASE_URL
from db.base import Base

import db.models  # noqa: F401  registers every model on Base.metadata

logger = logging.getLogger(__name__)


def _make_async_url(url: str) -> Optional[str]:
    """Convert a DB URL to the async driver form.

    Returns None if the URL scheme is not supported for async operations.
    """
    # Handle PostGIS (postgis://) and PostgreSQL (postgresql://) schemes
    if url.startswith("postgis://"):
        return url.replace("postgis://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    # JSONB columns and CDB_QueryTables need PostgreSQL
    if url.startswith("sqlite"):
        return None
    return url


# AsyncEngine using psycopg v3 driver; session factory bound to it if URL is provided
engine: Optional[AsyncEngine] = None
AsyncSessionLocal = None

if DATABASE_URL:
    ASYNC_DATABASE_URL = _make_async_url(DATABASE_URL)
    if ASYNC_DATABASE_URL:
        engine = create_async_engine(ASYNC_DATABASE_URL, echo=False)
        AsyncSessionLocal = sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

# Engine for the database holding users' data tables. Shares the metadata
# engine when both URLs point at the same database.
user_engine: Optional[AsyncEngine] = None

if USER_DATABASE_URL:
    if USER_DATABASE_URL == DATABASE_URL:
        user_engine = engine
    else:
        ASYNC_USER_DATABASE_URL = _make_async_url(USER_DATABASE_URL)
        if ASYNC_USER_DATABASE_URL:
            user_engine = create_async_engine(ASYNC_USER_DATABASE_URL, echo=False)


async def init_db() -> None:
    """Initialize the database by creating all tables defined on Base metadata."""
    if engine is None:
        return
    max_attempts = 15
    delay = 1.0
    for attempt in range(1, max_attempts + 1):
        try:
            async with engine.begin() as conn:
                # run_sync executes a synchronous callable in the async engine
                await conn.run_sync(Base.metadata.create_all)
            return
        except OperationalError as exc:
            if attempt >= max_attempts:
                raise
            logger.warning(
                "Database not ready (attempt %s/%s): %s",
                attempt,
                max_attempts,
                exc,
            )
            await asyncio.sleep(delay)
            delay = min(delay * 1.5, 5.0)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Async generator yielding a database session for dependency injection."""
    if AsyncSessionLocal is None:
        raise RuntimeError(
            """
            Database session factory is not configured;
            set DATABASE_URL and ensure PostgreSQL is running.
            """
        )
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def user_database(user) -> AsyncIterator[AsyncConnection]:
    """Open a connection to the user data database scoped to ``user``.

    The connection runs inside one transaction whose search path starts at
    the user's schema; it is rolled back on exit, so nothing run through it
    is ever persisted.
    """
    if user_engine is None:
        raise RuntimeError(
            "User database is not configured; set USER_DATABASE_URL or DATABASE_URL."
        )
    async with user_engine.connect() as conn:
        transaction = await conn.begin()
        try:
            await conn.execute(
                text("SELECT set_config('search_path', :path, true)"),
                {"path": f"{user.sql_safe_database_schema}, public"},
            )
            yield conn
        finally:
            await transaction.rollback()
