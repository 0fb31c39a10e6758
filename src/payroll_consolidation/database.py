"""Database connection and session management."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from payroll_consolidation.config import get_settings

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


def get_engine(database_url: str | None = None) -> AsyncEngine:
    """Create async database engine."""
    url = database_url or get_settings().database_url
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=False)
    return create_async_engine(
        url,
        echo=False,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )


# Global engine and session factory
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def init_db() -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Initialize database engine and session factory."""
    global _engine, _session_factory
    if _engine is None:
        _engine = get_engine()
        _session_factory = async_sessionmaker(
            _engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _engine, _session_factory


async def dispose_db() -> None:
    """Dispose the global engine, if one was created."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session that commits on success and rolls back on error."""
    _, factory = init_db()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def acquire_period_lock(session: AsyncSession, employee_id: str, pay_period: str) -> None:
    """Take a transaction-scoped advisory lock for one employee and pay period.

    Blocks until concurrent writers on the same key commit or roll back.
    Other dialects rely on the row locks taken by the caller.
    """
    if session.get_bind().dialect.name != "postgresql":
        return
    await session.execute(
        text("SELECT pg_advisory_xact_lock(hashtext(:key))"),
        {"key": f"{employee_id}:{pay_period}"},
    )
