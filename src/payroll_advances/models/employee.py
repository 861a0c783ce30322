"""Employee model (read-only from the engine's point of view)."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import Boolean, Index, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from payroll_advances.models.base import Base, TimestampMixin


class Employee(Base, TimestampMixin):
    """Employee record owned by the surrounding HR screens."""

    __tablename__ = "employees"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    organization_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    basic_salary: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (Index("ix_employees_organization_id", "organization_id"),)
