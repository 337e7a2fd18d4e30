"""
DocSummarizer Backend: Database Session Management
===================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
Why:   Centralizes all database connection logic in one place.
How:   `build_engine()` creates an async engine from a Settings instance; the
       module-level engine and session factory are built from the global
       settings. The session dependency commits on success and rolls back on
       error.
Who:   Used by the dependency wiring in `dependencies.py` and by the lifespan
       handler in main.py.
When:  Engine is created at module import; sessions are created per-request.

Connection Pooling Strategy:
    pool_size=20:     Persistent connections for normal load
    max_overflow=10:  Temporary connections for traffic spikes (total max = 30)
    pool_pre_ping:    Validates connections before use (catches stale connections)
    pool_recycle=3600: Recycles connections every hour

    SQLite URLs (tests, local experiments) get none of these: aiosqlite uses
    its own pool class that rejects the sizing arguments.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from docsummarizer.config import Settings, settings


# ── Engine Configuration ──────────────────────────────────────────────────
def build_engine(config: Settings) -> AsyncEngine:
    """Creates the async engine for `config.database_url`."""
    kwargs = {"echo": config.log_level == "DEBUG"}
    if not config.database_url.startswith("sqlite"):
        kwargs.update(
            pool_size=config.db_pool_size,
            max_overflow=config.db_max_overflow,
            pool_pre_ping=config.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return create_async_engine(config.database_url, **kwargs)


engine = build_engine(settings)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: the orchestrator commits mid-pipeline and keeps
# reading the same Document instance afterwards
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic reads for migrations and
    the test suite uses for `create_all`.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the repository built for this request
        3. On success: commits whatever the pipeline left uncommitted
        4. On error: rolls back the open transaction
        5. Always: closes the session (returns connection to pool)

    Durable pipeline steps (the ANALYZING and FAILED transitions) are
    committed by DocumentService itself; a rollback here never undoes them.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Closes all pooled connections. Called during application shutdown."""
    await engine.dispose()
