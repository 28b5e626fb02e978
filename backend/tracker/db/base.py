"""
Database Base Configuration

Sets up the async SQLAlchemy engine and session management. The engine is
built lazily on first use so importing models never opens a pool; services
receive the session factory through their constructor.

Usage:
    from tracker.db.base import get_session_factory, Base

    session_factory = get_session_factory()
    async with session_factory() as session:
        result = await session.execute(...)
"""

from collections.abc import AsyncGenerator
from functools import lru_cache
from typing import Any

from fastapi import Depends
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from tracker.config import settings, yaml_config


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


# Import models AFTER Base is defined to avoid circular imports.
# This ensures all models are registered with Base.metadata.
from tracker.db import models  # noqa: F401, E402


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    Pool sizing from config/default.yaml only applies to server databases;
    SQLite uses its own pool class.
    """
    kwargs: dict[str, Any] = {"echo": echo}
    if url.startswith("postgresql"):
        db_config: dict[str, Any] = yaml_config.get("database", {})
        kwargs.update(
            pool_size=db_config.get("pool_size", 5),
            max_overflow=db_config.get("max_overflow", 10),
            pool_timeout=db_config.get("pool_timeout", 30),
        )
    return create_async_engine(url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to an engine."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@lru_cache()
def get_engine() -> AsyncEngine:
    """Process-wide engine for the configured database."""
    return build_engine(settings.DATABASE_URL_RESOLVED, echo=settings.DEBUG)


@lru_cache()
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Process-wide session factory bound to get_engine()."""
    return build_session_factory(get_engine())


async def get_db(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting database sessions in FastAPI routes.

    Usage:
        @app.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def dialect_insert(session: AsyncSession, model: type[Base]):
    """
    Return an INSERT construct supporting ON CONFLICT for the session's backend.

    PostgreSQL in production, SQLite in tests; both dialects expose
    on_conflict_do_update / on_conflict_do_nothing with the same signature.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"Upsert not supported for dialect: {dialect}")


async def init_db(engine: AsyncEngine | None = None) -> None:
    """
    Initialize database tables.

    Called on application startup to create tables that don't exist.
    For production, use Alembic migrations instead.
    """
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
