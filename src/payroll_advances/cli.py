"""Payroll advances command line interface.

Provides operational tools for:
- Schema creation
- Outstanding advance balance queries
- Salary generation with advance deduction
- Salary record deletion with balance restore

Usage:
    python -m payroll_advances.cli init-db
    python -m payroll_advances.cli outstanding --organization-id X --employee-id Y
    python -m payroll_advances.cli generate --organization-id X --employee-id Y --period 2024-03
    python -m payroll_advances.cli delete-salary --organization-id X --salary-id Z
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Awaitable, Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from payroll_advances.api.schemas import ReversalResponse, SalaryRecordResponse
from payroll_advances.database import create_schema, dispose_db, init_db, run_in_transaction
from payroll_advances.exceptions import PayrollAdvanceError
from payroll_advances.logging_config import configure_logging
from payroll_advances.services.advance_ledger import AdvanceLedgerService
from payroll_advances.services.reversal_handler import ReversalHandler
from payroll_advances.services.salary_generator import SalaryGeneratorService

logger = logging.getLogger(__name__)


def parse_uuid(s: str) -> UUID:
    """Parse UUID string."""
    return UUID(s)


class AdvancesCli:
    """Payroll advances command line interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="payroll-advances",
            description="Payroll advance deduction tools",
        )
        parser.add_argument(
            "--log-level",
            type=str,
            help="Override LOG_LEVEL for this run",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # init-db command
        subparsers.add_parser(
            "init-db",
            help="Create engine tables in $DATABASE_URL",
        )

        # outstanding command
        outstanding = subparsers.add_parser(
            "outstanding",
            help="Show an employee's outstanding advance balance",
        )
        outstanding.add_argument(
            "--organization-id",
            type=parse_uuid,
            required=True,
            help="Organization (tenant) ID",
        )
        outstanding.add_argument(
            "--employee-id",
            type=parse_uuid,
            required=True,
            help="Employee ID",
        )

        # generate command
        generate = subparsers.add_parser(
            "generate",
            help="Generate a salary record and deduct outstanding advances",
        )
        generate.add_argument(
            "--organization-id",
            type=parse_uuid,
            required=True,
            help="Organization (tenant) ID",
        )
        generate.add_argument(
            "--employee-id",
            type=parse_uuid,
            required=True,
            help="Employee ID",
        )
        generate.add_argument(
            "--period",
            type=str,
            required=True,
            help="Pay period in YYYY-MM form",
        )
        generate.add_argument(
            "--basic-salary",
            type=str,
            help="Basic salary (default: the employee's configured salary)",
        )
        generate.add_argument("--overtime-hours", type=str, help="Overtime hours worked")
        generate.add_argument("--overtime-amount", type=str, help="Overtime pay")
        generate.add_argument("--bonus", type=str, help="Bonus amount")
        generate.add_argument("--deductions", type=str, help="Other deductions")
        generate.add_argument("--notes", type=str, help="Free-text notes")
        generate.add_argument(
            "--dry-run",
            action="store_true",
            help="Show the allocation without writing anything",
        )

        # delete-salary command
        delete = subparsers.add_parser(
            "delete-salary",
            help="Delete a salary record and restore the advances it deducted",
        )
        delete.add_argument(
            "--organization-id",
            type=parse_uuid,
            required=True,
            help="Organization (tenant) ID",
        )
        delete.add_argument(
            "--salary-id",
            type=parse_uuid,
            required=True,
            help="Salary record ID",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        configure_logging(parsed.log_level)

        handlers: dict[str, Callable[[argparse.Namespace], Awaitable[Any]]] = {
            "init-db": self._cmd_init_db,
            "outstanding": self._cmd_outstanding,
            "generate": self._cmd_generate,
            "delete-salary": self._cmd_delete_salary,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        try:
            output = asyncio.run(self._run_and_dispose(handler, parsed))
        except PayrollAdvanceError as exc:
            print(json.dumps(exc.to_dict()), file=sys.stderr)
            return 2

        print(json.dumps(output, indent=2, default=str))
        return 0

    async def _run_and_dispose(
        self,
        handler: Callable[[argparse.Namespace], Awaitable[Any]],
        args: argparse.Namespace,
    ) -> Any:
        try:
            return await handler(args)
        finally:
            await dispose_db()

    async def _cmd_init_db(self, args: argparse.Namespace) -> dict[str, Any]:
        """Create the engine schema."""
        engine, _ = init_db()
        await create_schema(engine)
        logger.info("Schema created")
        return {"status": "ok"}

    async def _cmd_outstanding(self, args: argparse.Namespace) -> dict[str, Any]:
        """Query an employee's outstanding advance balance."""
        _, factory = init_db()
        async with factory() as session:
            total = await AdvanceLedgerService(
                session, args.organization_id
            ).outstanding_balance(args.employee_id)
        return {"employee_id": str(args.employee_id), "outstanding_balance": str(total)}

    async def _cmd_generate(self, args: argparse.Namespace) -> dict[str, Any]:
        """Generate (or preview) a salary record."""
        _, factory = init_db()
        inputs = {
            "employee_id": args.employee_id,
            "period": args.period,
            "basic_salary": args.basic_salary,
            "overtime_hours": args.overtime_hours,
            "overtime_amount": args.overtime_amount,
            "bonus": args.bonus,
            "deductions": args.deductions,
        }

        if args.dry_run:
            async with factory() as session:
                allocation = await SalaryGeneratorService(
                    session, args.organization_id
                ).preview(**inputs)
            return {
                "gross_pay": str(allocation.gross_pay),
                "advance_deducted": str(allocation.total_deducted),
                "net_payable": str(allocation.net_payable),
                "deductions": allocation.snapshot(),
            }

        async def operation(session: AsyncSession) -> dict[str, Any]:
            record = await SalaryGeneratorService(session, args.organization_id).generate(
                notes=args.notes, **inputs
            )
            return SalaryRecordResponse.model_validate(record).model_dump(mode="json")

        return await run_in_transaction(factory, operation)

    async def _cmd_delete_salary(self, args: argparse.Namespace) -> dict[str, Any]:
        """Delete a salary record, restoring its advance deductions."""
        _, factory = init_db()

        async def operation(session: AsyncSession) -> dict[str, Any]:
            result = await ReversalHandler(session, args.organization_id).delete(
                args.salary_id
            )
            return ReversalResponse(
                salary_id=result.salary_id,
                total_restored=result.total_restored,
                restored=[entry.to_dict() for entry in result.restored],
                skipped_advance_ids=result.skipped_advance_ids,
            ).model_dump(mode="json")

        return await run_in_transaction(factory, operation)


def main(args: list[str] | None = None) -> int:
    """CLI entry point."""
    cli = AdvancesCli()
    return cli.run(args)


if __name__ == "__main__":
    sys.exit(main())
