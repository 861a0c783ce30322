"""Salary generator service - gross pay, FIFO advance allocation, persistence."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_advances.calculators.allocation import allocate, select_eligible
from payroll_advances.calculators.types import AllocationResult, PayComponents, PayPeriod
from payroll_advances.calculators.validation import (
    NOTES_MAX_LENGTH,
    parse_period,
    validate_pay_components,
    validate_text,
)
from payroll_advances.database import acquire_employee_lock
from payroll_advances.exceptions import (
    DuplicateError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from payroll_advances.models import Employee, SalaryRecord
from payroll_advances.services.advance_ledger import AdvanceLedgerService
from payroll_advances.services.audit import record_audit
from payroll_advances.services.state_machine import SalaryRecordStateMachine, SalaryStatus

logger = logging.getLogger(__name__)

NEGATIVE_NET_REASON = (
    "net payable cannot be negative - reduce deductions or amend advance first"
)


@dataclass(frozen=True)
class PeriodSummary:
    """Payroll totals for one organization and period."""

    period: str
    record_count: int
    total_net_payable: Decimal
    total_paid: Decimal
    total_pending: Decimal
    total_advance_deducted: Decimal


class SalaryGeneratorService:
    """Service for generating and maintaining salary records.

    Generation pipeline (one transaction):
    1) Validate pay inputs and reject a duplicate (employee, period)
    2) Compute gross pay
    3) Select eligible advances in FIFO order and allocate gross pay
    4) Persist the salary record with its deduction snapshot
    5) Reduce each touched advance balance by the amount taken

    After generation the advance portion is frozen: edits recompute net pay
    against the stored ``advance_deducted`` and never re-run allocation.
    """

    def __init__(self, session: AsyncSession, organization_id: UUID):
        self.session = session
        self.organization_id = organization_id
        self.ledger = AdvanceLedgerService(session, organization_id)

    async def get_record(self, salary_id: UUID) -> SalaryRecord | None:
        result = await self.session.execute(
            select(SalaryRecord).where(
                SalaryRecord.id == salary_id,
                SalaryRecord.organization_id == self.organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def require_record(self, salary_id: UUID) -> SalaryRecord:
        record = await self.get_record(salary_id)
        if record is None:
            raise NotFoundError("SalaryRecord", salary_id)
        return record

    async def find_record(self, employee_id: UUID, period: PayPeriod) -> SalaryRecord | None:
        result = await self.session.execute(
            select(SalaryRecord).where(
                SalaryRecord.organization_id == self.organization_id,
                SalaryRecord.employee_id == employee_id,
                SalaryRecord.year == period.year,
                SalaryRecord.month == period.month,
            )
        )
        return result.scalar_one_or_none()

    async def list_records(
        self,
        period: Any = None,
        employee_id: UUID | None = None,
        status: str | None = None,
    ) -> list[SalaryRecord]:
        """List salary records, newest first."""
        query = select(SalaryRecord).where(
            SalaryRecord.organization_id == self.organization_id
        )
        if period is not None:
            parsed = parse_period(period)
            query = query.where(
                SalaryRecord.year == parsed.year,
                SalaryRecord.month == parsed.month,
            )
        if employee_id is not None:
            query = query.where(SalaryRecord.employee_id == employee_id)
        if status is not None:
            query = query.where(SalaryRecord.status == status)

        query = query.order_by(
            SalaryRecord.year.desc(),
            SalaryRecord.month.desc(),
            SalaryRecord.created_at.desc(),
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def period_summary(self, period: Any) -> PeriodSummary:
        parsed = parse_period(period)
        records = await self.list_records(period=parsed)

        zero = Decimal("0")
        return PeriodSummary(
            period=str(parsed),
            record_count=len(records),
            total_net_payable=sum((r.net_payable for r in records), zero),
            total_paid=sum(
                (r.net_payable for r in records if r.status == SalaryStatus.PAID), zero
            ),
            total_pending=sum(
                (r.net_payable for r in records if r.status == SalaryStatus.PENDING), zero
            ),
            total_advance_deducted=sum((r.advance_deducted for r in records), zero),
        )

    async def preview(
        self,
        employee_id: UUID,
        period: Any,
        basic_salary: Any = None,
        overtime_hours: Any = None,
        overtime_amount: Any = None,
        bonus: Any = None,
        deductions: Any = None,
    ) -> AllocationResult:
        """Compute the allocation generate() would make, without writing."""
        parsed_period = parse_period(period)
        employee = await self.ledger.get_employee(employee_id, active_only=True)
        components = self._resolve_components(
            employee, basic_salary, overtime_hours, overtime_amount, bonus, deductions
        )
        return await self._allocate(employee_id, parsed_period, components)

    async def generate(
        self,
        employee_id: UUID,
        period: Any,
        basic_salary: Any = None,
        overtime_hours: Any = None,
        overtime_amount: Any = None,
        bonus: Any = None,
        deductions: Any = None,
        notes: str | None = None,
    ) -> SalaryRecord:
        """Generate one salary record and settle advances against it.

        ``basic_salary=None`` uses the employee's configured basic salary.

        Raises:
            ValidationError: bad inputs, or deductions exceeding earnings
            NotFoundError: employee not in this organization
            InvalidStateError: employee is inactive
            DuplicateError: a record already exists for the period
            ConcurrencyConflictError: an advance changed during allocation
        """
        parsed_period = parse_period(period)
        employee = await self.ledger.get_employee(employee_id, active_only=True)
        if await self.find_record(employee_id, parsed_period) is not None:
            raise DuplicateError(employee_id, str(parsed_period))

        components = self._resolve_components(
            employee, basic_salary, overtime_hours, overtime_amount, bonus, deductions
        )
        clean_notes = validate_text(notes, "notes", NOTES_MAX_LENGTH)

        await acquire_employee_lock(self.session, employee_id)
        allocation = await self._allocate(employee_id, parsed_period, components)

        record = SalaryRecord(
            organization_id=self.organization_id,
            employee_id=employee_id,
            year=parsed_period.year,
            month=parsed_period.month,
            basic_salary=components.basic_salary,
            overtime_hours=components.overtime_hours,
            overtime_amount=components.overtime_amount,
            bonus=components.bonus,
            deductions=components.deductions,
            advance_deducted=allocation.total_deducted,
            net_payable=allocation.net_payable,
            deduction_snapshot=allocation.snapshot(),
            status=SalaryStatus.PENDING.value,
            notes=clean_notes,
        )
        self.session.add(record)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            # Lost a race with another generate for the same period
            raise DuplicateError(employee_id, str(parsed_period)) from exc

        for entry in allocation.entries:
            await self.ledger.adjust_balance(entry.advance_id, -entry.amount_deducted)

        record_audit(
            self.session,
            self.organization_id,
            "salary_record",
            record.id,
            "generated",
            {
                "period": str(parsed_period),
                "gross_pay": allocation.gross_pay,
                "advance_deducted": allocation.total_deducted,
                "net_payable": allocation.net_payable,
            },
        )
        logger.info(
            "Generated salary %s for employee %s %s: gross=%s advance=%s net=%s (%d advances)",
            record.id,
            employee_id,
            parsed_period,
            allocation.gross_pay,
            allocation.total_deducted,
            allocation.net_payable,
            len(allocation.entries),
        )
        return record

    async def edit(
        self,
        salary_id: UUID,
        basic_salary: Any = None,
        overtime_hours: Any = None,
        overtime_amount: Any = None,
        bonus: Any = None,
        deductions: Any = None,
        notes: str | None = None,
    ) -> SalaryRecord:
        """Edit pay components of a pending record.

        ``None`` keeps the stored value. The advance deduction and its
        snapshot stay as generated; only net payable is recomputed.
        """
        record = await self.require_record(salary_id)
        SalaryRecordStateMachine.ensure_editable(record)

        components = validate_pay_components(
            basic_salary if basic_salary is not None else record.basic_salary,
            overtime_hours if overtime_hours is not None else record.overtime_hours,
            overtime_amount if overtime_amount is not None else record.overtime_amount,
            bonus if bonus is not None else record.bonus,
            deductions if deductions is not None else record.deductions,
        )
        clean_notes = validate_text(notes, "notes", NOTES_MAX_LENGTH)

        new_net = components.gross_pay - record.advance_deducted
        if new_net < 0:
            raise InvalidStateError("SalaryRecord", record.id, NEGATIVE_NET_REASON)

        record.basic_salary = components.basic_salary
        record.overtime_hours = components.overtime_hours
        record.overtime_amount = components.overtime_amount
        record.bonus = components.bonus
        record.deductions = components.deductions
        record.net_payable = new_net
        if notes is not None:
            record.notes = clean_notes
        await self.session.flush()

        record_audit(
            self.session,
            self.organization_id,
            "salary_record",
            record.id,
            "edited",
            {"gross_pay": components.gross_pay, "net_payable": new_net},
        )
        logger.info("Edited salary %s: net=%s", record.id, new_net)
        return record

    async def mark_paid(self, salary_id: UUID, paid_date: date | None = None) -> SalaryRecord:
        """Transition a pending record to paid."""
        record = await self.require_record(salary_id)
        SalaryRecordStateMachine.validate_transition(record, SalaryStatus.PAID.value)

        record.status = SalaryStatus.PAID.value
        record.paid_date = paid_date or date.today()
        await self.session.flush()

        record_audit(
            self.session,
            self.organization_id,
            "salary_record",
            record.id,
            "status_change:pending:paid",
            {"paid_date": record.paid_date},
        )
        logger.info("Marked salary %s paid on %s", record.id, record.paid_date)
        return record

    def _resolve_components(
        self,
        employee: Employee,
        basic_salary: Any,
        overtime_hours: Any,
        overtime_amount: Any,
        bonus: Any,
        deductions: Any,
    ) -> PayComponents:
        components = validate_pay_components(
            employee.basic_salary if basic_salary is None else basic_salary,
            overtime_hours,
            overtime_amount,
            bonus,
            deductions,
        )
        if components.gross_pay < 0:
            raise ValidationError("deductions", "deductions cannot exceed gross earnings")
        return components

    async def _allocate(
        self, employee_id: UUID, period: PayPeriod, components: PayComponents
    ) -> AllocationResult:
        balances = await self.ledger.eligible_balances(employee_id, period)
        return allocate(components.gross_pay, select_eligible(balances, period))
