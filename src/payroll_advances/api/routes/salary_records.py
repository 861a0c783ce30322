"""Salary record API endpoints: generate, preview, edit, mark paid, delete."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_advances.api.dependencies import (
    DbSession,
    OrganizationId,
    PayrollPermission,
    SessionFactory,
)
from payroll_advances.api.schemas import (
    DeductionEntryResponse,
    ErrorResponse,
    PeriodSummaryResponse,
    ReversalResponse,
    SalaryGenerateRequest,
    SalaryPreviewRequest,
    SalaryPreviewResponse,
    SalaryRecordListResponse,
    SalaryRecordResponse,
    SalaryUpdate,
)
from payroll_advances.calculators.validation import parse_period
from payroll_advances.database import run_in_transaction
from payroll_advances.services.reversal_handler import ReversalHandler
from payroll_advances.services.salary_generator import SalaryGeneratorService

router = APIRouter(prefix="/salary-records", tags=["salary-records"])


# ============================================================================
# Generation
# ============================================================================


@router.post(
    "",
    response_model=SalaryRecordResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[PayrollPermission],
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def generate_salary(
    factory: SessionFactory,
    organization_id: OrganizationId,
    payload: SalaryGenerateRequest,
) -> SalaryRecordResponse:
    """Generate a salary record, deducting outstanding advances oldest first."""

    async def operation(session: AsyncSession) -> SalaryRecordResponse:
        record = await SalaryGeneratorService(session, organization_id).generate(
            employee_id=payload.employee_id,
            period=payload.period,
            basic_salary=payload.basic_salary,
            overtime_hours=payload.overtime_hours,
            overtime_amount=payload.overtime_amount,
            bonus=payload.bonus,
            deductions=payload.deductions,
            notes=payload.notes,
        )
        return SalaryRecordResponse.model_validate(record)

    return await run_in_transaction(factory, operation)


@router.post(
    "/preview",
    response_model=SalaryPreviewResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def preview_salary(
    db: DbSession,
    organization_id: OrganizationId,
    payload: SalaryPreviewRequest,
) -> SalaryPreviewResponse:
    """Show the advance allocation a generate call would make. Writes nothing."""
    allocation = await SalaryGeneratorService(db, organization_id).preview(
        employee_id=payload.employee_id,
        period=payload.period,
        basic_salary=payload.basic_salary,
        overtime_hours=payload.overtime_hours,
        overtime_amount=payload.overtime_amount,
        bonus=payload.bonus,
        deductions=payload.deductions,
    )
    return SalaryPreviewResponse(
        employee_id=payload.employee_id,
        period=str(parse_period(payload.period)),
        gross_pay=allocation.gross_pay,
        advance_deducted=allocation.total_deducted,
        net_payable=allocation.net_payable,
        deductions=[DeductionEntryResponse.model_validate(e) for e in allocation.entries],
    )


# ============================================================================
# Queries
# ============================================================================


@router.get("", response_model=SalaryRecordListResponse)
async def list_salary_records(
    db: DbSession,
    organization_id: OrganizationId,
    period: str | None = None,
    employee_id: UUID | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> SalaryRecordListResponse:
    """List salary records, newest period first."""
    records = await SalaryGeneratorService(db, organization_id).list_records(
        period=period, employee_id=employee_id, status=status_filter
    )
    return SalaryRecordListResponse(
        items=[SalaryRecordResponse.model_validate(r) for r in records],
        total=len(records),
    )


@router.get(
    "/summary",
    response_model=PeriodSummaryResponse,
    responses={422: {"model": ErrorResponse}},
)
async def get_period_summary(
    db: DbSession,
    organization_id: OrganizationId,
    period: str,
) -> PeriodSummaryResponse:
    """Payable, paid and pending totals for one period."""
    summary = await SalaryGeneratorService(db, organization_id).period_summary(period)
    return PeriodSummaryResponse.model_validate(summary)


@router.get(
    "/{salary_id}",
    response_model=SalaryRecordResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_salary_record(
    db: DbSession,
    organization_id: OrganizationId,
    salary_id: Annotated[UUID, Path()],
) -> SalaryRecordResponse:
    """Get a specific salary record by ID."""
    record = await SalaryGeneratorService(db, organization_id).require_record(salary_id)
    return SalaryRecordResponse.model_validate(record)


# ============================================================================
# Mutations
# ============================================================================


@router.patch(
    "/{salary_id}",
    response_model=SalaryRecordResponse,
    dependencies=[PayrollPermission],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def edit_salary_record(
    factory: SessionFactory,
    organization_id: OrganizationId,
    salary_id: Annotated[UUID, Path()],
    payload: SalaryUpdate,
) -> SalaryRecordResponse:
    """Edit pay components of a pending record; the advance deduction is kept."""

    async def operation(session: AsyncSession) -> SalaryRecordResponse:
        record = await SalaryGeneratorService(session, organization_id).edit(
            salary_id,
            basic_salary=payload.basic_salary,
            overtime_hours=payload.overtime_hours,
            overtime_amount=payload.overtime_amount,
            bonus=payload.bonus,
            deductions=payload.deductions,
            notes=payload.notes,
        )
        return SalaryRecordResponse.model_validate(record)

    return await run_in_transaction(factory, operation)


@router.post(
    "/{salary_id}/mark-paid",
    response_model=SalaryRecordResponse,
    dependencies=[PayrollPermission],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def mark_salary_paid(
    factory: SessionFactory,
    organization_id: OrganizationId,
    salary_id: Annotated[UUID, Path()],
) -> SalaryRecordResponse:
    """Mark a pending salary record as paid today."""

    async def operation(session: AsyncSession) -> SalaryRecordResponse:
        record = await SalaryGeneratorService(session, organization_id).mark_paid(salary_id)
        return SalaryRecordResponse.model_validate(record)

    return await run_in_transaction(factory, operation)


@router.delete(
    "/{salary_id}",
    response_model=ReversalResponse,
    dependencies=[PayrollPermission],
    responses={404: {"model": ErrorResponse}},
)
async def delete_salary_record(
    factory: SessionFactory,
    organization_id: OrganizationId,
    salary_id: Annotated[UUID, Path()],
) -> ReversalResponse:
    """Restore advance balances from the record's snapshot, then delete it."""

    async def operation(session: AsyncSession) -> ReversalResponse:
        result = await ReversalHandler(session, organization_id).delete(salary_id)
        return ReversalResponse(
            salary_id=result.salary_id,
            total_restored=result.total_restored,
            restored=[DeductionEntryResponse.model_validate(e) for e in result.restored],
            skipped_advance_ids=result.skipped_advance_ids,
        )

    return await run_in_transaction(factory, operation)
