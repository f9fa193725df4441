"""Async SQLAlchemy engine and session management."""

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from jwtool.core.settings import DatabaseSettings
from jwtool.db.base import BaseEntity


class _EngineHolder:
    """Lazy holder for the engine and session factory."""

    engine: AsyncEngine | None = None
    factory: async_sessionmaker[AsyncSession] | None = None


_holder = _EngineHolder()


def get_engine() -> AsyncEngine:
    """Lazily create the async engine from DatabaseSettings."""
    if _holder.engine is None:
        db = DatabaseSettings()
        if db.is_sqlite:
            _holder.engine = create_async_engine(db.url, echo=db.echo)
        else:
            _holder.engine = create_async_engine(
                db.url,
                echo=db.echo,
                pool_size=db.pool_size,
                max_overflow=db.max_overflow,
            )
    return _holder.engine


def _get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Lazily create the async session factory."""
    if _holder.factory is None:
        _holder.factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _holder.factory


async def create_tables() -> None:
    """Create vault tables that do not exist yet."""
    async with get_engine().begin() as conn:
        await conn.run_sync(BaseEntity.metadata.create_all)


async def dispose_engine() -> None:
    """Close pooled connections and forget the engine."""
    if _holder.engine is not None:
        await _holder.engine.dispose()
    _holder.engine = None
    _holder.factory = None


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields an async database session."""
    factory = _get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
