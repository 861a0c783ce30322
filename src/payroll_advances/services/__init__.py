"""Payroll advance services."""

from payroll_advances.services.advance_ledger import AdvanceLedgerService
from payroll_advances.services.reversal_handler import ReversalHandler, ReversalResult
from payroll_advances.services.salary_generator import PeriodSummary, SalaryGeneratorService
from payroll_advances.services.state_machine import (
    AdvanceState,
    AdvanceStateMachine,
    AdvanceStatus,
    InvalidTransitionError,
    SalaryRecordStateMachine,
    SalaryStatus,
)

__all__ = [
    "AdvanceLedgerService",
    "AdvanceState",
    "AdvanceStateMachine",
    "AdvanceStatus",
    "InvalidTransitionError",
    "PeriodSummary",
    "ReversalHandler",
    "ReversalResult",
    "SalaryGeneratorService",
    "SalaryRecordStateMachine",
    "SalaryStatus",
]
