"""Pure allocation and validation logic."""

from payroll_advances.calculators.allocation import allocate, select_eligible
from payroll_advances.calculators.types import (
    AdvanceBalance,
    AllocationResult,
    DeductionEntry,
    PayComponents,
    PayPeriod,
)

__all__ = [
    "AdvanceBalance",
    "AllocationResult",
    "DeductionEntry",
    "PayComponents",
    "PayPeriod",
    "allocate",
    "select_eligible",
]
