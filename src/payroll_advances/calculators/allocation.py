"""FIFO allocation of gross pay against outstanding advances.

Pure functions with no persistence, so the policy can be tested without a
database:

1) Filter to advances with a balance whose deduct-from period has started
2) Order by deduct-from period, then grant date (oldest obligation first)
3) Take ``min(balance, remaining gross)`` from each in turn
4) Stop at the first advance that cannot be serviced at all
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from payroll_advances.calculators.types import (
    AdvanceBalance,
    AllocationResult,
    DeductionEntry,
    PayPeriod,
)

ZERO = Decimal("0")


def select_eligible(
    advances: Iterable[AdvanceBalance], period: PayPeriod
) -> list[AdvanceBalance]:
    """Return advances eligible for ``period`` in allocation order.

    ``YYYY-MM`` strings are zero-padded, so string comparison matches
    chronological order.
    """
    target = str(period)
    eligible = [
        adv
        for adv in advances
        if adv.remaining_balance > ZERO and adv.deduct_from_period <= target
    ]
    return sorted(eligible, key=lambda adv: adv.sort_key)


def allocate(gross_pay: Decimal, sorted_advances: Iterable[AdvanceBalance]) -> AllocationResult:
    """Allocate ``gross_pay`` across advances already in allocation order.

    The total taken never exceeds ``max(0, gross_pay)``. Allocation stops at
    the first advance that receives nothing, even if a later one still has
    a balance.
    """
    result = AllocationResult(gross_pay=gross_pay)
    remaining_gross = gross_pay

    for adv in sorted_advances:
        take = min(adv.remaining_balance, max(ZERO, remaining_gross))
        if take <= ZERO:
            break

        result.entries.append(
            DeductionEntry(
                advance_id=adv.advance_id,
                amount_deducted=take,
                remaining_after=adv.remaining_balance - take,
            )
        )
        remaining_gross -= take

    return result
