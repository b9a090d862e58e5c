"""
Wanderlust Backend - Database Session Management
=================================================

What:  Async SQLAlchemy engine, session factory, declarative base and the
       FastAPI session dependency.
How:   One engine per process; one AsyncSession per request. Services
       commit their own writes before the handler responds; the dependency
       only rolls back when something raises and closes the session.
Who:   Route handlers and guards via `Depends(get_db_session)`.

Connection Pooling:
    PostgreSQL (asyncpg): queue pool sized by DB_POOL_SIZE / DB_MAX_OVERFLOW,
    pre-ping on checkout, recycled hourly.
    SQLite (aiosqlite, tests and local hacking): NullPool, one connection
    per checkout, so nothing is shared between event loops.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from wanderlust.config import settings


def _engine_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if settings.is_sqlite:
        options["poolclass"] = NullPool
    else:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(settings.database_url, **_engine_options())

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: templates read attributes after the commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all ORM models; its metadata drives Alembic."""
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to guards and the route handler (shared via dependency cache)
        3. On error: rolls back and re-raises for the error translator
        4. Always: closes the session (uncommitted work is discarded)

    Nothing is committed here: FastAPI finishes yield dependencies after
    the response has been sent, too late to turn a failed commit into an
    error page.

    Example usage in a route:
        @router.get("/listings")
        async def index(db: AsyncSession = Depends(get_db_session)):
            result = await db.execute(select(Listing))
            return result.scalars().all()
    """
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def create_tables() -> None:
    """Create any missing tables (SQLite development databases only; Postgres uses Alembic)."""
    # Models must be imported so their tables are registered on Base.metadata
    from wanderlust import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Close all pooled connections (application shutdown)."""
    await engine.dispose()
