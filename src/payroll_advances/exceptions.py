"""Typed exceptions for the payroll advances engine.

Every error carries a machine-readable ``code`` so the API and CLI can map
it without parsing messages:

    PayrollAdvanceError
    +-- ValidationError           VALIDATION_ERROR
    +-- DuplicateError            DUPLICATE_SALARY_RECORD
    +-- InvalidStateError         INVALID_STATE
    +-- NotFoundError             NOT_FOUND
    +-- ConcurrencyConflictError  CONCURRENCY_CONFLICT
    +-- PermissionDeniedError     PERMISSION_DENIED
"""

from __future__ import annotations

from typing import Any
from uuid import UUID


class PayrollAdvanceError(Exception):
    """Base class for all engine errors."""

    code: str = "PAYROLL_ADVANCE_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code}


class ValidationError(PayrollAdvanceError):
    """Raised when an input field fails parsing or range checks."""

    code = "VALIDATION_ERROR"

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class DuplicateError(PayrollAdvanceError):
    """Raised when a salary record already exists for an employee and period."""

    code = "DUPLICATE_SALARY_RECORD"

    def __init__(self, employee_id: UUID, period: str):
        self.employee_id = employee_id
        self.period = period
        super().__init__(
            f"Salary record already exists for employee {employee_id} in {period}"
        )


class InvalidStateError(PayrollAdvanceError):
    """Raised when a mutation is not allowed in the record's current state."""

    code = "INVALID_STATE"

    def __init__(self, entity_type: str, entity_id: UUID, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"{entity_type} {entity_id}: {reason}")


class NotFoundError(PayrollAdvanceError):
    """Raised when a referenced record does not exist in the tenant."""

    code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: UUID):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} {entity_id} not found")


class ConcurrencyConflictError(PayrollAdvanceError):
    """Raised when an advance balance changed between read and write."""

    code = "CONCURRENCY_CONFLICT"

    def __init__(self, advance_id: UUID, expected_version: int):
        self.advance_id = advance_id
        self.expected_version = expected_version
        super().__init__(
            f"Advance {advance_id} was modified concurrently "
            f"(expected version {expected_version})"
        )


class PermissionDeniedError(PayrollAdvanceError):
    """Raised when the caller is not allowed to perform the action."""

    code = "PERMISSION_DENIED"

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Not permitted to {action}")


def ensure_permitted(allowed: bool, action: str) -> None:
    """Gate an action on the externally supplied permission flag."""
    if not allowed:
        raise PermissionDeniedError(action)
