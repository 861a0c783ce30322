"""Type definitions for the allocation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID


@dataclass(frozen=True, order=True)
class PayPeriod:
    """Calendar month pay period, ordered chronologically."""

    year: int
    month: int

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class PayComponents:
    """Validated pay inputs for one salary record."""

    basic_salary: Decimal
    overtime_hours: Decimal = Decimal("0")
    overtime_amount: Decimal = Decimal("0")
    bonus: Decimal = Decimal("0")
    deductions: Decimal = Decimal("0")

    @property
    def gross_pay(self) -> Decimal:
        """basic + overtime + bonus - other deductions (may be negative)."""
        return self.basic_salary + self.overtime_amount + self.bonus - self.deductions


@dataclass(frozen=True)
class AdvanceBalance:
    """The slice of an advance grant the allocator needs."""

    advance_id: UUID
    remaining_balance: Decimal
    deduct_from_period: str
    grant_date: date
    created_at: datetime | None = None

    @property
    def sort_key(self) -> tuple[Any, ...]:
        # created_at and id only break ties between same-day grants
        created = self.created_at.timestamp() if self.created_at else 0.0
        return (self.deduct_from_period, self.grant_date, created, str(self.advance_id))


@dataclass(frozen=True)
class DeductionEntry:
    """One ledger mutation caused by a salary generation."""

    advance_id: UUID
    amount_deducted: Decimal
    remaining_after: Decimal

    def to_dict(self) -> dict[str, str]:
        """JSON-safe form stored in the salary record snapshot."""
        return {
            "advance_id": str(self.advance_id),
            "amount_deducted": str(self.amount_deducted),
            "remaining_after": str(self.remaining_after),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeductionEntry:
        return cls(
            advance_id=UUID(str(data["advance_id"])),
            amount_deducted=Decimal(str(data["amount_deducted"])),
            remaining_after=Decimal(str(data["remaining_after"])),
        )


@dataclass
class AllocationResult:
    """Outcome of allocating gross pay against eligible advances."""

    gross_pay: Decimal
    entries: list[DeductionEntry] = field(default_factory=list)

    @property
    def total_deducted(self) -> Decimal:
        return sum((e.amount_deducted for e in self.entries), Decimal("0"))

    @property
    def net_payable(self) -> Decimal:
        return self.gross_pay - self.total_deducted

    def snapshot(self) -> list[dict[str, str]]:
        return [entry.to_dict() for entry in self.entries]
