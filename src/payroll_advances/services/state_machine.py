"""Advance and salary record state machines with guard checks."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from payroll_advances.exceptions import InvalidStateError

if TYPE_CHECKING:
    from payroll_advances.models import AdvanceGrant, SalaryRecord


ALREADY_USED_REASON = "already used in payroll"


class AdvanceStatus(str, Enum):
    """Persisted advance status values."""

    ACTIVE = "active"
    SETTLED = "settled"


class AdvanceState(str, Enum):
    """Allocation state of an advance, derived from its balance."""

    UNTOUCHED = "untouched"
    PARTIALLY_ALLOCATED = "partially_allocated"
    SETTLED = "settled"


class SalaryStatus(str, Enum):
    """Salary record status values."""

    PENDING = "pending"
    PAID = "paid"


class InvalidTransitionError(InvalidStateError):
    """Raised when an invalid status transition is attempted."""

    def __init__(
        self,
        entity_type: str,
        entity_id: UUID,
        from_status: str,
        to_status: str,
        reason: str | None = None,
    ):
        self.from_status = from_status
        self.to_status = to_status
        msg = f"invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(entity_type, entity_id, msg)


class AdvanceStateMachine:
    """State machine for advance grants.

    States (derived, never stored):
    - untouched: remaining_balance == amount
    - partially_allocated: 0 < remaining_balance < amount
    - settled: remaining_balance == 0

    Allocation moves forward (untouched → partially_allocated → settled);
    reversal moves back. Only untouched advances may be edited or deleted,
    since a salary snapshot may reference any other.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        AdvanceState.UNTOUCHED: [AdvanceState.PARTIALLY_ALLOCATED, AdvanceState.SETTLED],
        AdvanceState.PARTIALLY_ALLOCATED: [
            AdvanceState.UNTOUCHED,
            AdvanceState.PARTIALLY_ALLOCATED,
            AdvanceState.SETTLED,
        ],
        AdvanceState.SETTLED: [AdvanceState.PARTIALLY_ALLOCATED, AdvanceState.UNTOUCHED],
    }

    MUTABLE_STATES = {AdvanceState.UNTOUCHED}

    @staticmethod
    def state_for(amount: Decimal, remaining_balance: Decimal) -> AdvanceState:
        if remaining_balance <= 0:
            return AdvanceState.SETTLED
        if remaining_balance >= amount:
            return AdvanceState.UNTOUCHED
        return AdvanceState.PARTIALLY_ALLOCATED

    @classmethod
    def state_of(cls, grant: AdvanceGrant) -> AdvanceState:
        return cls.state_for(grant.amount, grant.remaining_balance)

    @staticmethod
    def status_for(remaining_balance: Decimal) -> AdvanceStatus:
        """Persisted status: settled iff nothing remains."""
        return AdvanceStatus.SETTLED if remaining_balance <= 0 else AdvanceStatus.ACTIVE

    @classmethod
    def can_transition(cls, from_state: str, to_state: str) -> bool:
        return to_state in cls.VALID_TRANSITIONS.get(from_state, [])

    @classmethod
    def validate_transition(cls, grant: AdvanceGrant, to_state: AdvanceState) -> None:
        """Raise InvalidTransitionError for a balance move the table forbids."""
        from_state = cls.state_of(grant)
        if not cls.can_transition(from_state, to_state):
            raise InvalidTransitionError(
                "Advance", grant.id, from_state.value, to_state.value
            )

    @classmethod
    def can_modify(cls, state: str) -> bool:
        """Check if the advance definition (amount, period, reason) may change."""
        return state in cls.MUTABLE_STATES

    @classmethod
    def ensure_modifiable(cls, grant: AdvanceGrant) -> None:
        """Raise InvalidStateError unless the advance is untouched."""
        if not cls.can_modify(cls.state_of(grant)):
            raise InvalidStateError("Advance", grant.id, ALREADY_USED_REASON)


class SalaryRecordStateMachine:
    """State machine for salary records.

    Allowed transitions:
    - pending → paid
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        SalaryStatus.PENDING: [SalaryStatus.PAID],
        SalaryStatus.PAID: [],  # Terminal state
    }

    # Statuses where pay components can be edited
    INPUTS_MUTABLE = {SalaryStatus.PENDING}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        return to_status in cls.VALID_TRANSITIONS.get(from_status, [])

    @classmethod
    def can_modify_inputs(cls, status: str) -> bool:
        return status in cls.INPUTS_MUTABLE

    @classmethod
    def validate_transition(cls, record: SalaryRecord, to_status: str) -> None:
        if not cls.can_transition(record.status, to_status):
            raise InvalidTransitionError("SalaryRecord", record.id, record.status, to_status)

    @classmethod
    def ensure_editable(cls, record: SalaryRecord) -> None:
        if not cls.can_modify_inputs(record.status):
            raise InvalidStateError(
                "SalaryRecord",
                record.id,
                f"cannot edit a salary record in status '{record.status}'",
            )
