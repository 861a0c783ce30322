"""Pytest fixtures for payroll advances tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from payroll_advances.database import create_schema, make_session_factory
from payroll_advances.models import AdvanceGrant, Employee

# In-memory SQLite shared across sessions through a single connection.
# PostgreSQL-only behaviour (advisory locks, JSONB) is skipped on this dialect.
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh test database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_schema(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(engine)


@pytest.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def organization_id() -> UUID:
    return uuid4()


@pytest.fixture
def other_organization_id() -> UUID:
    """A second tenant, for isolation checks."""
    return uuid4()


async def add_employee(
    session: AsyncSession,
    organization_id: UUID,
    basic_salary: Decimal = Decimal("5000.00"),
    full_name: str = "Test Employee",
) -> Employee:
    employee = Employee(
        organization_id=organization_id,
        full_name=full_name,
        basic_salary=basic_salary,
    )
    session.add(employee)
    await session.flush()
    return employee


async def add_advance(
    session: AsyncSession,
    employee: Employee,
    amount: Decimal,
    deduct_from_period: str,
    grant_date: date | None = None,
    remaining_balance: Decimal | None = None,
) -> AdvanceGrant:
    """Insert an advance directly, bypassing the ledger service."""
    grant = AdvanceGrant(
        organization_id=employee.organization_id,
        employee_id=employee.id,
        amount=amount,
        remaining_balance=amount if remaining_balance is None else remaining_balance,
        grant_date=grant_date or date(2024, 1, 1),
        deduct_from_period=deduct_from_period,
        status="active" if (remaining_balance is None or remaining_balance > 0) else "settled",
        version=1,
    )
    session.add(grant)
    await session.flush()
    return grant


@pytest.fixture
def make_employee(session: AsyncSession, organization_id: UUID):
    """Factory fixture: add an employee to the test organization."""

    async def _make(
        basic_salary: Decimal = Decimal("5000.00"),
        organization: UUID | None = None,
    ) -> Employee:
        return await add_employee(session, organization or organization_id, basic_salary)

    return _make


@pytest.fixture
def make_advance(session: AsyncSession):
    """Factory fixture: insert an advance for an employee."""

    async def _make(
        employee: Employee,
        amount: Decimal,
        deduct_from_period: str,
        grant_date: date | None = None,
        remaining_balance: Decimal | None = None,
    ) -> AdvanceGrant:
        return await add_advance(
            session, employee, amount, deduct_from_period, grant_date, remaining_balance
        )

    return _make


@pytest.fixture
async def employee(make_employee) -> Employee:
    """Employee with a basic salary of 5000.00."""
    return await make_employee()
