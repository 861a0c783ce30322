"""Employee-scoped advance queries."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path

from payroll_advances.api.dependencies import DbSession, OrganizationId
from payroll_advances.api.schemas import ErrorResponse, OutstandingBalanceResponse
from payroll_advances.services.advance_ledger import AdvanceLedgerService

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get(
    "/{employee_id}/outstanding-advances",
    response_model=OutstandingBalanceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_outstanding_advances(
    db: DbSession,
    organization_id: OrganizationId,
    employee_id: Annotated[UUID, Path()],
) -> OutstandingBalanceResponse:
    """Total balance still owed across an employee's active advances."""
    total = await AdvanceLedgerService(db, organization_id).outstanding_balance(employee_id)
    return OutstandingBalanceResponse(employee_id=employee_id, outstanding_balance=total)
