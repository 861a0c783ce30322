"""Advance ledger API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_advances.api.dependencies import (
    DbSession,
    OrganizationId,
    PayrollPermission,
    SessionFactory,
)
from payroll_advances.api.schemas import (
    AdvanceCreate,
    AdvanceListResponse,
    AdvanceResponse,
    AdvanceUpdate,
    ErrorResponse,
)
from payroll_advances.database import run_in_transaction
from payroll_advances.services.advance_ledger import AdvanceLedgerService

router = APIRouter(prefix="/advances", tags=["advances"])


@router.post(
    "",
    response_model=AdvanceResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[PayrollPermission],
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def create_advance(
    factory: SessionFactory,
    organization_id: OrganizationId,
    payload: AdvanceCreate,
) -> AdvanceResponse:
    """Grant a new advance to an employee."""

    async def operation(session: AsyncSession) -> AdvanceResponse:
        ledger = AdvanceLedgerService(session, organization_id)
        grant = await ledger.create_advance(
            employee_id=payload.employee_id,
            amount=payload.amount,
            deduct_from_period=payload.deduct_from_period,
            reason=payload.reason,
            grant_date=payload.grant_date,
        )
        return AdvanceResponse.model_validate(grant)

    return await run_in_transaction(factory, operation)


@router.get("", response_model=AdvanceListResponse)
async def list_advances(
    db: DbSession,
    organization_id: OrganizationId,
    employee_id: UUID | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> AdvanceListResponse:
    """List advances in allocation order."""
    ledger = AdvanceLedgerService(db, organization_id)
    grants = await ledger.list_advances(employee_id=employee_id, status=status_filter)
    return AdvanceListResponse(
        items=[AdvanceResponse.model_validate(g) for g in grants],
        total=len(grants),
    )


@router.get(
    "/{advance_id}",
    response_model=AdvanceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_advance(
    db: DbSession,
    organization_id: OrganizationId,
    advance_id: Annotated[UUID, Path()],
) -> AdvanceResponse:
    """Get a specific advance by ID."""
    grant = await AdvanceLedgerService(db, organization_id).require_advance(advance_id)
    return AdvanceResponse.model_validate(grant)


@router.patch(
    "/{advance_id}",
    response_model=AdvanceResponse,
    dependencies=[PayrollPermission],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def edit_advance(
    factory: SessionFactory,
    organization_id: OrganizationId,
    advance_id: Annotated[UUID, Path()],
    payload: AdvanceUpdate,
) -> AdvanceResponse:
    """Edit an advance that has not been used in payroll."""

    async def operation(session: AsyncSession) -> AdvanceResponse:
        grant = await AdvanceLedgerService(session, organization_id).edit_advance(
            advance_id,
            amount=payload.amount,
            deduct_from_period=payload.deduct_from_period,
            reason=payload.reason,
        )
        return AdvanceResponse.model_validate(grant)

    return await run_in_transaction(factory, operation)


@router.delete(
    "/{advance_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[PayrollPermission],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_advance(
    factory: SessionFactory,
    organization_id: OrganizationId,
    advance_id: Annotated[UUID, Path()],
) -> Response:
    """Delete an advance that has not been used in payroll."""

    async def operation(session: AsyncSession) -> None:
        await AdvanceLedgerService(session, organization_id).delete_advance(advance_id)

    await run_in_transaction(factory, operation)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
