"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ErrorResponse(BaseModel):
    """Error body returned for engine errors."""

    detail: str
    code: str


# ============================================================================
# Advance schemas
# ============================================================================


class AdvanceCreate(BaseModel):
    """Schema for granting a new advance."""

    employee_id: UUID
    amount: Decimal
    deduct_from_period: str
    reason: str | None = None
    grant_date: date | None = None


class AdvanceUpdate(BaseModel):
    """Schema for editing an untouched advance; omitted fields are unchanged."""

    amount: Decimal | None = None
    deduct_from_period: str | None = None
    reason: str | None = None


class AdvanceResponse(BaseModel):
    """Schema for advance response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    employee_id: UUID
    amount: Decimal
    remaining_balance: Decimal
    grant_date: date
    deduct_from_period: str
    status: str
    reason: str | None = None
    version: int
    created_at: datetime
    updated_at: datetime


class AdvanceListResponse(BaseModel):
    """Schema for listing advances."""

    items: list[AdvanceResponse]
    total: int


class OutstandingBalanceResponse(BaseModel):
    employee_id: UUID
    outstanding_balance: Decimal


# ============================================================================
# Salary record schemas
# ============================================================================


class SalaryPreviewRequest(BaseModel):
    """Pay inputs; omitted basic_salary uses the employee default."""

    employee_id: UUID
    period: str
    basic_salary: Decimal | None = None
    overtime_hours: Decimal | None = None
    overtime_amount: Decimal | None = None
    bonus: Decimal | None = None
    deductions: Decimal | None = None


class SalaryGenerateRequest(SalaryPreviewRequest):
    """Schema for generating a salary record."""

    notes: str | None = None


class SalaryUpdate(BaseModel):
    """Schema for editing a pending salary record; omitted fields are unchanged."""

    basic_salary: Decimal | None = None
    overtime_hours: Decimal | None = None
    overtime_amount: Decimal | None = None
    bonus: Decimal | None = None
    deductions: Decimal | None = None
    notes: str | None = None


class DeductionEntryResponse(BaseModel):
    """One snapshot entry: what was taken from which advance."""

    model_config = ConfigDict(from_attributes=True)

    advance_id: UUID
    amount_deducted: Decimal
    remaining_after: Decimal


class SalaryRecordResponse(BaseModel):
    """Schema for salary record response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    employee_id: UUID
    period: str
    month: int
    year: int
    basic_salary: Decimal
    overtime_hours: Decimal
    overtime_amount: Decimal
    bonus: Decimal
    deductions: Decimal
    gross_pay: Decimal
    advance_deducted: Decimal
    net_payable: Decimal
    deduction_snapshot: list[DeductionEntryResponse]
    status: str
    paid_date: date | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class SalaryRecordListResponse(BaseModel):
    """Schema for listing salary records."""

    items: list[SalaryRecordResponse]
    total: int


class SalaryPreviewResponse(BaseModel):
    """Allocation generate would make for the given inputs."""

    employee_id: UUID
    period: str
    gross_pay: Decimal
    advance_deducted: Decimal
    net_payable: Decimal
    deductions: list[DeductionEntryResponse]


class ReversalResponse(BaseModel):
    """Result of deleting a salary record."""

    salary_id: UUID
    total_restored: Decimal
    restored: list[DeductionEntryResponse]
    skipped_advance_ids: list[UUID]


class PeriodSummaryResponse(BaseModel):
    """Payroll totals for one period."""

    model_config = ConfigDict(from_attributes=True)

    period: str
    record_count: int
    total_net_payable: Decimal
    total_paid: Decimal
    total_pending: Decimal
    total_advance_deducted: Decimal
