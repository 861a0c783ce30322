"""Tests for advance and salary record state machines."""

from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_advances.exceptions import InvalidStateError
from payroll_advances.models import AdvanceGrant, SalaryRecord
from payroll_advances.services.state_machine import (
    AdvanceState,
    AdvanceStateMachine,
    AdvanceStatus,
    InvalidTransitionError,
    SalaryRecordStateMachine,
    SalaryStatus,
)


def grant(amount: str, remaining: str) -> AdvanceGrant:
    return AdvanceGrant(
        id=uuid4(),
        amount=Decimal(amount),
        remaining_balance=Decimal(remaining),
    )


class TestAdvanceStateMachine:
    """Allocation states derived from the remaining balance."""

    def test_state_for(self):
        assert AdvanceStateMachine.state_for(Decimal("100"), Decimal("100")) == AdvanceState.UNTOUCHED
        assert (
            AdvanceStateMachine.state_for(Decimal("100"), Decimal("40"))
            == AdvanceState.PARTIALLY_ALLOCATED
        )
        assert AdvanceStateMachine.state_for(Decimal("100"), Decimal("0")) == AdvanceState.SETTLED

    def test_status_for(self):
        assert AdvanceStateMachine.status_for(Decimal("0")) == AdvanceStatus.SETTLED
        assert AdvanceStateMachine.status_for(Decimal("0.01")) == AdvanceStatus.ACTIVE

    def test_valid_transitions(self):
        """Allocation moves forward, reversal moves back."""
        assert AdvanceStateMachine.can_transition("untouched", "partially_allocated") is True
        assert AdvanceStateMachine.can_transition("untouched", "settled") is True
        assert AdvanceStateMachine.can_transition("partially_allocated", "settled") is True
        assert AdvanceStateMachine.can_transition("settled", "partially_allocated") is True
        assert AdvanceStateMachine.can_transition("settled", "untouched") is True

    def test_invalid_transitions(self):
        assert AdvanceStateMachine.can_transition("untouched", "untouched") is False
        assert AdvanceStateMachine.can_transition("settled", "settled") is False
        assert AdvanceStateMachine.can_transition("unknown", "settled") is False

    def test_can_modify(self):
        assert AdvanceStateMachine.can_modify("untouched") is True
        assert AdvanceStateMachine.can_modify("partially_allocated") is False
        assert AdvanceStateMachine.can_modify("settled") is False

    def test_ensure_modifiable(self):
        AdvanceStateMachine.ensure_modifiable(grant("500", "500"))

        for remaining in ("499.99", "0"):
            with pytest.raises(InvalidStateError) as exc_info:
                AdvanceStateMachine.ensure_modifiable(grant("500", remaining))
            assert exc_info.value.reason == "already used in payroll"
            assert exc_info.value.code == "INVALID_STATE"

    def test_validate_transition(self):
        AdvanceStateMachine.validate_transition(grant("10", "10"), AdvanceState.SETTLED)
        AdvanceStateMachine.validate_transition(grant("10", "0"), AdvanceState.UNTOUCHED)

        with pytest.raises(InvalidTransitionError) as exc_info:
            AdvanceStateMachine.validate_transition(grant("10", "10"), AdvanceState.UNTOUCHED)

        assert exc_info.value.from_status == "untouched"
        assert exc_info.value.to_status == "untouched"


class TestSalaryRecordStateMachine:
    """Salary record status transitions."""

    def test_valid_transitions(self):
        assert SalaryRecordStateMachine.can_transition("pending", "paid") is True

    def test_invalid_transitions(self):
        # Paid is terminal
        assert SalaryRecordStateMachine.can_transition("paid", "pending") is False
        assert SalaryRecordStateMachine.can_transition("paid", "paid") is False
        assert SalaryRecordStateMachine.can_transition("pending", "pending") is False

    def test_validate_transition_raises(self):
        record = SalaryRecord(id=uuid4(), status=SalaryStatus.PAID.value)

        with pytest.raises(InvalidTransitionError) as exc_info:
            SalaryRecordStateMachine.validate_transition(record, SalaryStatus.PAID)

        assert exc_info.value.from_status == "paid"
        assert exc_info.value.to_status == SalaryStatus.PAID
        assert isinstance(exc_info.value, InvalidStateError)

    def test_can_modify_inputs(self):
        assert SalaryRecordStateMachine.can_modify_inputs("pending") is True
        assert SalaryRecordStateMachine.can_modify_inputs("paid") is False

    def test_ensure_editable(self):
        SalaryRecordStateMachine.ensure_editable(SalaryRecord(id=uuid4(), status="pending"))

        with pytest.raises(InvalidStateError):
            SalaryRecordStateMachine.ensure_editable(SalaryRecord(id=uuid4(), status="paid"))
