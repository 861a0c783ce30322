"""Integration test fixtures: the API wired to the in-memory test database."""

from collections.abc import AsyncGenerator
from decimal import Decimal
from uuid import UUID

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from payroll_advances.api.app import create_app
from payroll_advances.api.dependencies import get_session_factory
from payroll_advances.models import Employee


@pytest_asyncio.fixture
async def app(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[FastAPI, None]:
    """Application using the per-test database."""
    app = create_app()
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def seeded_employee(
    session_factory: async_sessionmaker[AsyncSession], organization_id: UUID
) -> Employee:
    """A committed employee with a basic salary of 5000.00."""
    async with session_factory() as session:
        employee = Employee(
            organization_id=organization_id,
            full_name="Alice Example",
            basic_salary=Decimal("5000.00"),
        )
        session.add(employee)
        await session.commit()
    return employee


@pytest.fixture
def headers(organization_id: UUID) -> dict[str, str]:
    """Tenant and payroll permission headers for mutating calls."""
    return {
        "X-Organization-ID": str(organization_id),
        "X-Payroll-Permission": "true",
    }
