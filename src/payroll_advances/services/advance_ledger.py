"""Advance ledger service - salary advances as mutable remaining balances."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_advances.calculators.types import AdvanceBalance, PayPeriod
from payroll_advances.calculators.validation import (
    REASON_MAX_LENGTH,
    parse_period,
    parse_positive_amount,
    validate_text,
)
from payroll_advances.database import acquire_employee_lock
from payroll_advances.exceptions import (
    ConcurrencyConflictError,
    InvalidStateError,
    NotFoundError,
)
from payroll_advances.models import AdvanceGrant, Employee
from payroll_advances.models.base import utcnow
from payroll_advances.services.audit import record_audit
from payroll_advances.services.state_machine import AdvanceStateMachine, AdvanceStatus

logger = logging.getLogger(__name__)


class AdvanceLedgerService:
    """Service for advance grants within one organization.

    Operations:
    - create_advance: grant a new advance with its full balance outstanding
    - edit_advance / delete_advance: only while the advance is untouched
    - adjust_balance: move the balance during allocation and reversal

    Every query is scoped to ``organization_id``.
    """

    def __init__(self, session: AsyncSession, organization_id: UUID):
        self.session = session
        self.organization_id = organization_id

    async def get_employee(self, employee_id: UUID, active_only: bool = False) -> Employee:
        """Load an employee of this organization or raise NotFoundError.

        With ``active_only``, an inactive employee raises InvalidStateError.
        """
        result = await self.session.execute(
            select(Employee).where(
                Employee.id == employee_id,
                Employee.organization_id == self.organization_id,
            )
        )
        employee = result.scalar_one_or_none()
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        if active_only and not employee.is_active:
            raise InvalidStateError("Employee", employee_id, "employee is inactive")
        return employee

    async def get_advance(self, advance_id: UUID) -> AdvanceGrant | None:
        result = await self.session.execute(
            select(AdvanceGrant).where(
                AdvanceGrant.id == advance_id,
                AdvanceGrant.organization_id == self.organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def require_advance(self, advance_id: UUID) -> AdvanceGrant:
        grant = await self.get_advance(advance_id)
        if grant is None:
            raise NotFoundError("Advance", advance_id)
        return grant

    async def list_advances(
        self,
        employee_id: UUID | None = None,
        status: str | None = None,
    ) -> list[AdvanceGrant]:
        """List advances in allocation order, optionally filtered."""
        query = select(AdvanceGrant).where(
            AdvanceGrant.organization_id == self.organization_id
        )
        if employee_id is not None:
            query = query.where(AdvanceGrant.employee_id == employee_id)
        if status is not None:
            query = query.where(AdvanceGrant.status == status)

        query = query.order_by(
            AdvanceGrant.deduct_from_period,
            AdvanceGrant.grant_date,
            AdvanceGrant.created_at,
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def outstanding_balance(self, employee_id: UUID) -> Decimal:
        """Sum of remaining balances over an employee's active advances."""
        await self.get_employee(employee_id)
        total = await self.session.scalar(
            select(func.coalesce(func.sum(AdvanceGrant.remaining_balance), 0)).where(
                AdvanceGrant.organization_id == self.organization_id,
                AdvanceGrant.employee_id == employee_id,
                AdvanceGrant.status == AdvanceStatus.ACTIVE.value,
            )
        )
        return Decimal(str(total or 0))

    async def eligible_balances(
        self, employee_id: UUID, period: PayPeriod
    ) -> list[AdvanceBalance]:
        """Active advances with a balance whose deduct-from period has started."""
        result = await self.session.execute(
            select(AdvanceGrant)
            .where(
                AdvanceGrant.organization_id == self.organization_id,
                AdvanceGrant.employee_id == employee_id,
                AdvanceGrant.status == AdvanceStatus.ACTIVE.value,
                AdvanceGrant.remaining_balance > 0,
                AdvanceGrant.deduct_from_period <= str(period),
            )
            .order_by(
                AdvanceGrant.deduct_from_period,
                AdvanceGrant.grant_date,
                AdvanceGrant.created_at,
            )
        )
        return [
            AdvanceBalance(
                advance_id=grant.id,
                remaining_balance=grant.remaining_balance,
                deduct_from_period=grant.deduct_from_period,
                grant_date=grant.grant_date,
                created_at=grant.created_at,
            )
            for grant in result.scalars().all()
        ]

    async def create_advance(
        self,
        employee_id: UUID,
        amount: Any,
        deduct_from_period: Any,
        reason: str | None = None,
        grant_date: date | None = None,
    ) -> AdvanceGrant:
        """Grant a new advance; its full amount is outstanding."""
        parsed_amount = parse_positive_amount(amount, "amount")
        period = parse_period(deduct_from_period, "deduct_from_period")
        clean_reason = validate_text(reason, "reason", REASON_MAX_LENGTH)

        await self.get_employee(employee_id)

        grant = AdvanceGrant(
            organization_id=self.organization_id,
            employee_id=employee_id,
            amount=parsed_amount,
            remaining_balance=parsed_amount,
            grant_date=grant_date or date.today(),
            deduct_from_period=str(period),
            status=AdvanceStatus.ACTIVE.value,
            reason=clean_reason,
            version=1,
        )
        self.session.add(grant)
        await self.session.flush()

        record_audit(
            self.session,
            self.organization_id,
            "advance",
            grant.id,
            "created",
            {"amount": parsed_amount, "deduct_from_period": str(period)},
        )
        logger.info(
            "Created advance %s for employee %s: %s from %s",
            grant.id,
            employee_id,
            parsed_amount,
            period,
        )
        return grant

    async def edit_advance(
        self,
        advance_id: UUID,
        amount: Any = None,
        deduct_from_period: Any = None,
        reason: str | None = None,
    ) -> AdvanceGrant:
        """Edit an untouched advance. A new amount also resets the balance.

        ``None`` leaves a field unchanged; a blank reason clears it.
        """
        grant = await self.require_advance(advance_id)
        await acquire_employee_lock(self.session, grant.employee_id)
        AdvanceStateMachine.ensure_modifiable(grant)

        parsed_amount = parse_positive_amount(amount, "amount") if amount is not None else None
        period = (
            parse_period(deduct_from_period, "deduct_from_period")
            if deduct_from_period is not None
            else None
        )
        clean_reason = (
            validate_text(reason, "reason", REASON_MAX_LENGTH) if reason is not None else None
        )

        changes: dict[str, Any] = {}
        if parsed_amount is not None:
            changes["amount"] = parsed_amount
        if period is not None:
            changes["deduct_from_period"] = str(period)
        if reason is not None:
            changes["reason"] = clean_reason

        values = dict(changes)
        if parsed_amount is not None:
            values["remaining_balance"] = parsed_amount

        expected_version = grant.version
        result = await self.session.execute(
            update(AdvanceGrant)
            .where(*self._untouched_at_version(advance_id, expected_version))
            .values(**values, version=expected_version + 1, updated_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount == 0:
            raise ConcurrencyConflictError(advance_id, expected_version)
        await self.session.refresh(grant)

        record_audit(self.session, self.organization_id, "advance", grant.id, "edited", changes)
        logger.info("Edited advance %s: %s", grant.id, sorted(changes))
        return grant

    async def delete_advance(self, advance_id: UUID) -> None:
        """Delete an untouched advance."""
        grant = await self.require_advance(advance_id)
        await acquire_employee_lock(self.session, grant.employee_id)
        AdvanceStateMachine.ensure_modifiable(grant)

        amount, employee_id, expected_version = grant.amount, grant.employee_id, grant.version
        result = await self.session.execute(
            delete(AdvanceGrant)
            .where(*self._untouched_at_version(advance_id, expected_version))
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount == 0:
            raise ConcurrencyConflictError(advance_id, expected_version)

        record_audit(
            self.session,
            self.organization_id,
            "advance",
            advance_id,
            "deleted",
            {"amount": amount, "employee_id": employee_id},
        )
        logger.info("Deleted advance %s", advance_id)

    async def adjust_balance(self, advance_id: UUID, delta: Decimal) -> AdvanceGrant:
        """Apply ``remaining_balance += delta`` clamped to ``[0, amount]``.

        The write is conditional on the version read with the advance, so a
        concurrent allocation against the same advance raises
        ConcurrencyConflictError instead of double-spending the balance.
        """
        grant = await self.require_advance(advance_id)

        new_balance = min(max(grant.remaining_balance + delta, Decimal("0")), grant.amount)
        if new_balance != grant.remaining_balance + delta:
            logger.warning(
                "Clamped balance of advance %s: %s %+f outside [0, %s]",
                advance_id,
                grant.remaining_balance,
                delta,
                grant.amount,
            )
        AdvanceStateMachine.validate_transition(
            grant, AdvanceStateMachine.state_for(grant.amount, new_balance)
        )

        expected_version = grant.version
        result = await self.session.execute(
            update(AdvanceGrant)
            .where(
                AdvanceGrant.id == advance_id,
                AdvanceGrant.organization_id == self.organization_id,
                AdvanceGrant.version == expected_version,
            )
            .values(
                remaining_balance=new_balance,
                status=AdvanceStateMachine.status_for(new_balance).value,
                version=expected_version + 1,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount == 0:
            raise ConcurrencyConflictError(advance_id, expected_version)

        await self.session.refresh(grant)
        return grant

    def _untouched_at_version(self, advance_id: UUID, version: int) -> tuple[Any, ...]:
        """Row still untouched and unchanged since it was read."""
        return (
            AdvanceGrant.id == advance_id,
            AdvanceGrant.organization_id == self.organization_id,
            AdvanceGrant.version == version,
            AdvanceGrant.remaining_balance == AdvanceGrant.amount,
        )
