"""Ledger-wide invariants across sequences of generate and delete.

For every employee, what has been drawn from advances must equal what the
surviving salary records say they deducted, and every balance stays within
``[0, amount]``.
"""

from decimal import Decimal

import pytest

from payroll_advances.services.advance_ledger import AdvanceLedgerService
from payroll_advances.services.reversal_handler import ReversalHandler
from payroll_advances.services.salary_generator import SalaryGeneratorService


async def assert_conserved(session, organization_id, employee_id):
    ledger = AdvanceLedgerService(session, organization_id)
    salaries = SalaryGeneratorService(session, organization_id)

    grants = await ledger.list_advances(employee_id=employee_id)
    records = await salaries.list_records(employee_id=employee_id)

    drawn = sum((g.amount - g.remaining_balance for g in grants), Decimal("0"))
    deducted = sum((r.advance_deducted for r in records), Decimal("0"))
    assert drawn == deducted

    for grant in grants:
        assert Decimal("0") <= grant.remaining_balance <= grant.amount
        assert (grant.status == "settled") == (grant.remaining_balance == 0)
    for record in records:
        assert record.net_payable >= 0
        assert record.net_payable == record.gross_pay - record.advance_deducted


@pytest.mark.parametrize(
    "salaries, delete_order",
    [
        (["1500", "1500", "1500", "1500"], [1, 3, 0, 2]),
        (["400", "9000", "0", "2500"], [0, 1, 2, 3]),
        (["5000", "5000", "5000", "5000"], [3, 2, 1, 0]),
        (["1200.50", "999.99", "3000", "10"], [2, 0, 3, 1]),
    ],
)
async def test_conservation_through_generate_and_delete(
    session, organization_id, make_employee, make_advance, salaries, delete_order
):
    employee = await make_employee(basic_salary=Decimal("0"))
    await make_advance(employee, Decimal("2000"), "2024-01")
    await make_advance(employee, Decimal("3500.25"), "2024-02")
    await make_advance(employee, Decimal("750"), "2024-04")

    generator = SalaryGeneratorService(session, organization_id)
    handler = ReversalHandler(session, organization_id)

    records = []
    for month, basic in enumerate(salaries, start=1):
        records.append(await generator.generate(employee.id, f"2024-{month:02d}", basic_salary=basic))
        await assert_conserved(session, organization_id, employee.id)

    for index in delete_order:
        await handler.delete(records[index].id)
        await assert_conserved(session, organization_id, employee.id)

    ledger = AdvanceLedgerService(session, organization_id)
    assert await ledger.outstanding_balance(employee.id) == Decimal("6250.25")
