"""ORM models for the payroll advances engine."""

from payroll_advances.models.audit import AuditEvent
from payroll_advances.models.base import Base, TimestampMixin
from payroll_advances.models.employee import Employee
from payroll_advances.models.payroll import AdvanceGrant, SalaryRecord

__all__ = [
    "AdvanceGrant",
    "AuditEvent",
    "Base",
    "Employee",
    "SalaryRecord",
    "TimestampMixin",
]
