"""Advance grant and salary record models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from payroll_advances.models.base import Base, TimestampMixin

JSONVariant = JSON().with_variant(JSONB(), "postgresql")


class AdvanceGrant(Base, TimestampMixin):
    """One cash advance paid to one employee, tracked as a remaining balance."""

    __tablename__ = "employee_advances"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    organization_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    employee_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    remaining_balance: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    grant_date: Mapped[date] = mapped_column(Date, nullable=False)
    deduct_from_period: Mapped[str] = mapped_column(String(7), nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("amount > 0", name="employee_advances_amount_positive"),
        CheckConstraint(
            "remaining_balance >= 0 AND remaining_balance <= amount",
            name="employee_advances_balance_range",
        ),
        CheckConstraint(
            "status IN ('active', 'settled')",
            name="employee_advances_status_check",
        ),
        Index(
            "ix_employee_advances_org_employee",
            "organization_id",
            "employee_id",
            "status",
        ),
    )


class SalaryRecord(Base, TimestampMixin):
    """One generated pay-period result for one employee."""

    __tablename__ = "employee_salary_records"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    organization_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    employee_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    basic_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    overtime_hours: Mapped[Decimal] = mapped_column(
        Numeric(7, 2), nullable=False, default=Decimal("0")
    )
    overtime_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    bonus: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    deductions: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    advance_deducted: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    net_payable: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    deduction_snapshot: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONVariant, nullable=False, default=list
    )

    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    paid_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "organization_id",
            "employee_id",
            "year",
            "month",
            name="employee_salary_records_period_unique",
        ),
        CheckConstraint("month BETWEEN 1 AND 12", name="employee_salary_records_month_check"),
        CheckConstraint("net_payable >= 0", name="employee_salary_records_net_nonnegative"),
        CheckConstraint(
            "status IN ('pending', 'paid')",
            name="employee_salary_records_status_check",
        ),
        Index("ix_employee_salary_records_org_period", "organization_id", "year", "month"),
    )

    @property
    def period(self) -> str:
        """Pay period in ``YYYY-MM`` form."""
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def gross_pay(self) -> Decimal:
        return self.basic_salary + self.overtime_amount + self.bonus - self.deductions

