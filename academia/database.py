"""
Academia API — Database Session Management
===========================================

What:  Async SQLAlchemy engine, session factory, FastAPI session dependency,
       and the startup schema reconciliation step.
How:   Creates an async engine over aiosqlite, provides a session dependency
       that rolls back on error and always closes the session.
Who:   Used by route handlers via FastAPI's dependency injection system and
       by the application lifespan (init_schema / dispose_engine).
When:  Engine is created at module import; sessions are created per-request.

Connection handling:
    The engine owns the only connection pool in the process. Concurrent
    requests each check out their own AsyncSession; no application-level
    locking spans more than one statement.
"""

import logging
from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from academia.config import settings

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> Dict[str, Any]:
    """Driver-specific engine keyword arguments."""
    options: Dict[str, Any] = {"echo": settings.db_echo}
    if not url.startswith("sqlite"):
        options["pool_pre_ping"] = True
        options["pool_recycle"] = 3600
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: attributes stay readable after the service commits
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Every model registered here is part of Base.metadata, which is what
    init_schema() creates (and, in reset mode, drops).
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler (the handler performs queries)
        3. On error: rolls back the transaction and re-raises
        4. Always: closes the session (returns connection to pool)

    Writes are committed by the service methods before they return; this
    teardown never commits, since it may run after the response is sent.

    Example usage in a route:
        @router.get("/estudiantes")
        async def list_students(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise  # Global error handlers build the response
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def init_schema(reset: bool = False) -> None:
    """
    Reconcile the live database with the declared models.

    What:  reset=False creates missing tables only; existing tables and rows
           are untouched. reset=True drops every declared table first, so all
           stored data is lost.
    When:  Once, from the application lifespan, before the server accepts
           connections.
    Raises:
        Any SQLAlchemy / driver error. The caller treats it as fatal.
    """
    # Models must be imported so their tables are registered on Base.metadata
    from academia.models import student  # noqa: F401

    async with engine.begin() as conn:
        if reset:
            logger.warning("Dropping all tables (reset_schema_on_start=True)")
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    logger.info(
        "Database schema synchronised (%s): %s",
        "reset" if reset else "create-missing",
        ", ".join(sorted(Base.metadata.tables)),
    )


async def dispose_engine() -> None:
    """Closes every pooled connection. Called during application shutdown."""
    await engine.dispose()
