"""Database connection, session and transaction management."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Awaitable, Callable, TypeVar
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from payroll_advances.config import get_settings
from payroll_advances.exceptions import ConcurrencyConflictError
from payroll_advances.models import Base

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_engine(database_url: str | None = None) -> AsyncEngine:
    """Create async database engine."""
    url = database_url or get_settings().database_url
    if url.startswith("postgresql"):
        return create_async_engine(
            url,
            echo=False,
            pool_pre_ping=True,
            pool_size=10,
            max_overflow=20,
        )
    return create_async_engine(url, echo=False)


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# Global engine and session factory
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def init_db() -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Initialize database engine and session factory."""
    global _engine, _session_factory
    if _engine is None:
        _engine = get_engine()
        _session_factory = make_session_factory(_engine)
    assert _session_factory is not None
    return _engine, _session_factory


async def dispose_db() -> None:
    """Dispose the global engine (application shutdown)."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


async def create_schema(engine: AsyncEngine) -> None:
    """Create all engine tables if they do not exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def acquire_employee_lock(session: AsyncSession, employee_id: UUID) -> None:
    """Serialize advance writes for one employee.

    Takes a transaction-scoped PostgreSQL advisory lock, released on commit
    or rollback. Other dialects rely on the optimistic version check on
    ``employee_advances`` alone.
    """
    if session.get_bind().dialect.name != "postgresql":
        return
    await session.execute(
        text("SELECT pg_advisory_xact_lock(hashtext(:employee_id))"),
        {"employee_id": str(employee_id)},
    )


async def run_in_transaction(
    factory: async_sessionmaker[AsyncSession],
    operation: Callable[[AsyncSession], Awaitable[T]],
    max_attempts: int | None = None,
) -> T:
    """Run ``operation`` in its own transaction, retrying on balance conflicts.

    Every attempt gets a fresh session, so a retry re-reads advance balances
    from the database. Any other error rolls back and propagates.
    """
    attempts = max_attempts or get_settings().allocation_max_retries
    for attempt in range(1, attempts + 1):
        async with factory() as session:
            try:
                result = await operation(session)
                await session.commit()
                return result
            except ConcurrencyConflictError as exc:
                await session.rollback()
                if attempt >= attempts:
                    logger.error(
                        "Giving up after %d attempts: %s", attempt, exc.message
                    )
                    raise
                logger.warning(
                    "Retrying after concurrency conflict (attempt %d/%d): %s",
                    attempt,
                    attempts,
                    exc.message,
                )
            except Exception:
                await session.rollback()
                raise
    raise RuntimeError("run_in_transaction exhausted without result")
