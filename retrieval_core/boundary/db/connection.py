"""
Database connection management.

Provides the async SQLAlchemy engine and session factory for the metadata
store and the document-to-vector linkage index.

Dependencies: sqlalchemy, retrieval_core.configs
System role: Database connection lifecycle management
"""

import logging

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from retrieval_core.boundary.db.base import Base
from retrieval_core.configs.database import DatabaseSettings

logger = logging.getLogger(__name__)


def get_async_engine(settings: DatabaseSettings) -> AsyncEngine:
    """
    Create async SQLAlchemy engine.

    In-memory SQLite URLs share a single connection (StaticPool) so every
    session sees the same database.

    Args:
        settings: Database configuration

    Returns:
        AsyncEngine: Configured async SQLAlchemy engine

    Usage:
        engine = get_async_engine(get_settings().database)
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
    """
    kwargs = {"echo": settings.echo_sql}
    if settings.is_sqlite and ":memory:" in settings.url:
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}
    elif not settings.is_sqlite:
        kwargs["pool_pre_ping"] = settings.pool_pre_ping
    return create_async_engine(settings.url, **kwargs)


def get_async_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """
    Create async session factory bound to ``engine``.

    Returns:
        async_sessionmaker: Factory configured for explicit transaction control

    Usage:
        SessionFactory = get_async_session_factory(engine)
        async with SessionFactory() as session:
            session.add(obj)
            await session.commit()
    """
    return async_sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create all tables registered on Base if they do not exist."""
    # Model modules must be imported so their tables are registered
    from retrieval_core.boundary.db import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"{__name__}:init_models - Tables ensured: {sorted(Base.metadata.tables)}")
