"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from payroll_advances.database import init_db
from payroll_advances.exceptions import ensure_permitted


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory dependency; mutating routes open one transaction per attempt."""
    _, factory = init_db()
    return factory


async def get_db_session(
    factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> AsyncGenerator[AsyncSession, None]:
    """Get a read-only database session dependency."""
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_organization_id(
    x_organization_id: Annotated[str | None, Header()] = None,
) -> UUID:
    """Extract the tenant (organization) ID from header."""
    if not x_organization_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Organization-ID header is required",
        )
    try:
        return UUID(x_organization_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-Organization-ID format",
        )


async def require_payroll_permission(
    x_payroll_permission: Annotated[str | None, Header()] = None,
) -> None:
    """Gate mutating endpoints on the caller's payroll permission flag."""
    allowed = (x_payroll_permission or "").strip().lower() == "true"
    ensure_permitted(allowed, "manage payroll")


# Type aliases for cleaner dependency injection
SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
OrganizationId = Annotated[UUID, Depends(get_organization_id)]
PayrollPermission = Depends(require_payroll_permission)
