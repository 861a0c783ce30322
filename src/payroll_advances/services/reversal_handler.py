"""Reversal handler - undo a salary record's advance deductions, then delete it."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from payroll_advances.calculators.types import DeductionEntry
from payroll_advances.database import acquire_employee_lock
from payroll_advances.exceptions import NotFoundError
from payroll_advances.services.advance_ledger import AdvanceLedgerService
from payroll_advances.services.audit import record_audit
from payroll_advances.services.salary_generator import SalaryGeneratorService

logger = logging.getLogger(__name__)


@dataclass
class ReversalResult:
    """Outcome of deleting a salary record."""

    salary_id: UUID
    total_restored: Decimal = Decimal("0")
    restored: list[DeductionEntry] = field(default_factory=list)
    skipped_advance_ids: list[UUID] = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return len(self.skipped_advance_ids) > 0


class ReversalHandler:
    """Deletes salary records after replaying their deduction snapshot.

    The snapshot stored at generation time is the only source of truth for
    what to restore; advance history is never reconstructed. An advance that
    no longer exists is skipped so the delete can still go through.
    """

    def __init__(self, session: AsyncSession, organization_id: UUID):
        self.session = session
        self.organization_id = organization_id
        self.ledger = AdvanceLedgerService(session, organization_id)
        self.salaries = SalaryGeneratorService(session, organization_id)

    async def delete(self, salary_id: UUID) -> ReversalResult:
        """Restore advance balances from the snapshot and delete the record."""
        record = await self.salaries.require_record(salary_id)
        result = ReversalResult(salary_id=salary_id)

        await acquire_employee_lock(self.session, record.employee_id)

        if record.advance_deducted > 0:
            # Restore in reverse order of allocation
            entries = [DeductionEntry.from_dict(d) for d in record.deduction_snapshot]
            for entry in reversed(entries):
                try:
                    await self.ledger.adjust_balance(entry.advance_id, entry.amount_deducted)
                except NotFoundError:
                    logger.warning(
                        "Salary %s: advance %s no longer exists, skipping restore of %s",
                        salary_id,
                        entry.advance_id,
                        entry.amount_deducted,
                    )
                    result.skipped_advance_ids.append(entry.advance_id)
                    continue
                result.restored.append(entry)
                result.total_restored += entry.amount_deducted

        await self.session.delete(record)
        await self.session.flush()

        record_audit(
            self.session,
            self.organization_id,
            "salary_record",
            salary_id,
            "deleted",
            {
                "period": record.period,
                "employee_id": record.employee_id,
                "total_restored": result.total_restored,
                "skipped_advance_ids": result.skipped_advance_ids,
            },
        )
        logger.info(
            "Deleted salary %s: restored %s across %d advances (%d skipped)",
            salary_id,
            result.total_restored,
            len(result.restored),
            len(result.skipped_advance_ids),
        )
        return result
