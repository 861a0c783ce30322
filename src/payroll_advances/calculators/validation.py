"""Input parsing and range checks.

Every numeric input is parsed into a ``Decimal`` and bounds-checked before
it reaches the allocator. A value that cannot be parsed is an error, never
a silent zero; only a blank optional field means zero.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from payroll_advances.calculators.types import PayComponents, PayPeriod
from payroll_advances.config import get_settings
from payroll_advances.exceptions import ValidationError

CENTS = Decimal("0.01")

MIN_YEAR = 2000
MAX_YEAR = 2100

REASON_MAX_LENGTH = 500
NOTES_MAX_LENGTH = 1000

_PERIOD_RE = re.compile(r"^(\d{4})-(\d{2})$")


def round_to_cents(amount: Decimal) -> Decimal:
    """Round amount to 2 decimal places (cents)."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _to_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(field, f"{field} must be a valid number")
    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, (int, float, str)):
        try:
            parsed = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(field, f"{field} must be a valid number") from None
    else:
        raise ValidationError(field, f"{field} must be a valid number")

    if not parsed.is_finite():
        raise ValidationError(field, f"{field} must be a finite number")
    return parsed


def parse_amount(
    value: Any,
    field: str,
    minimum: Decimal = Decimal("0"),
    maximum: Decimal | None = None,
    required: bool = False,
) -> Decimal:
    """Parse a money amount into cents within ``[minimum, maximum]``."""
    if _is_blank(value):
        if required:
            raise ValidationError(field, f"{field} is required")
        return Decimal("0.00")

    upper = maximum if maximum is not None else get_settings().max_amount
    parsed = round_to_cents(_to_decimal(value, field))

    if parsed < minimum:
        raise ValidationError(field, f"{field} must be at least {minimum}")
    if parsed > upper:
        raise ValidationError(field, f"{field} must be at most {upper:,}")
    return parsed


def parse_positive_amount(value: Any, field: str) -> Decimal:
    """Parse a required amount that must be strictly greater than zero."""
    parsed = parse_amount(value, field, required=True)
    if parsed <= 0:
        raise ValidationError(field, f"{field} must be greater than 0")
    return parsed


def parse_hours(value: Any, field: str = "overtime_hours") -> Decimal:
    return parse_amount(value, field, maximum=get_settings().max_overtime_hours)


def parse_period(value: Any, field: str = "period") -> PayPeriod:
    """Parse a ``YYYY-MM`` string (or pass through a PayPeriod)."""
    if isinstance(value, PayPeriod):
        period = value
    else:
        if not isinstance(value, str):
            raise ValidationError(field, f"{field} must be in YYYY-MM form")
        match = _PERIOD_RE.match(value.strip())
        if match is None:
            raise ValidationError(field, f"{field} must be in YYYY-MM form")
        period = PayPeriod(year=int(match.group(1)), month=int(match.group(2)))

    if not 1 <= period.month <= 12:
        raise ValidationError(field, f"{field} month must be between 1 and 12")
    if not MIN_YEAR <= period.year <= MAX_YEAR:
        raise ValidationError(
            field, f"{field} year must be between {MIN_YEAR} and {MAX_YEAR}"
        )
    return period


def validate_text(value: str | None, field: str, max_length: int) -> str | None:
    """Trim optional free text; blank becomes None."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(field, f"{field} must be text")
    value = value.strip()
    if not value:
        return None
    if len(value) > max_length:
        raise ValidationError(field, f"{field} must be at most {max_length} characters")
    return value


def validate_pay_components(
    basic_salary: Any,
    overtime_hours: Any = None,
    overtime_amount: Any = None,
    bonus: Any = None,
    deductions: Any = None,
) -> PayComponents:
    """Validate all pay inputs of a salary record at once."""
    return PayComponents(
        basic_salary=parse_amount(basic_salary, "basic_salary"),
        overtime_hours=parse_hours(overtime_hours),
        overtime_amount=parse_amount(overtime_amount, "overtime_amount"),
        bonus=parse_amount(bonus, "bonus"),
        deductions=parse_amount(deductions, "deductions"),
    )
