"""PAYE RTI Command Line Interface.

Provides operational tools for:
- Tax period lookup
- Apprenticeship levy calculation
- Filing report export
- Applying due scheduled transitions

Usage:
    python -m paye_rti.cli tax-period --date 2024-04-06
    python -m paye_rti.cli levy --total-payroll 4000000
    python -m paye_rti.cli report --submission-id X --output report.txt
    python -m paye_rti.cli process-due
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Callable
from uuid import UUID

from paye_rti.calculators.apprenticeship_levy import (
    LEVY_THRESHOLD,
    calculate_apprenticeship_levy,
)
from paye_rti.calculators.tax_period import TaxPeriod
from paye_rti.config import get_settings
from paye_rti.database import dispose_db, init_db
from paye_rti.gateway import HmrcGatewayStub
from paye_rti.services.report_renderer import ReportRenderer, report_filename
from paye_rti.services.submission_repository import SubmissionRepository
from paye_rti.services.transition_worker import TransitionWorker

logger = logging.getLogger(__name__)


def parse_date(s: str) -> date:
    """Parse ISO date string."""
    return date.fromisoformat(s)


def parse_uuid(s: str) -> UUID:
    """Parse UUID string."""
    return UUID(s)


def parse_amount(s: str) -> Decimal:
    """Parse a money amount."""
    try:
        return Decimal(s.replace(",", ""))
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"invalid amount: {s}") from exc


class RtiCli:
    """PAYE RTI Command Line Interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m paye_rti.cli",
            description="PAYE RTI operational tools",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # tax-period command
        period = subparsers.add_parser(
            "tax-period",
            help="Show the fiscal year and month for a date",
        )
        period.add_argument(
            "--date",
            type=parse_date,
            default=None,
            help="Calendar date (ISO format, default: today)",
        )

        # levy command
        levy = subparsers.add_parser(
            "levy",
            help="Calculate the apprenticeship levy on an annual pay bill",
        )
        levy.add_argument(
            "--total-payroll",
            type=parse_amount,
            required=True,
            help="Annual pay bill in pounds",
        )

        # report command
        report = subparsers.add_parser(
            "report",
            help="Render the filing report of a submission",
        )
        report.add_argument(
            "--submission-id",
            type=parse_uuid,
            required=True,
            help="Submission to render",
        )
        report.add_argument(
            "--output",
            type=str,
            help="Write to this file ('-' for stdout, default: RTI_<type>_<id>.txt)",
        )

        # process-due command
        subparsers.add_parser(
            "process-due",
            help="Apply scheduled transitions that are due now",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        handlers: dict[str, Callable[..., int]] = {
            "tax-period": self._cmd_tax_period,
            "levy": self._cmd_levy,
            "report": self._cmd_report,
            "process-due": self._cmd_process_due,
        }

        handler = handlers.get(parsed.command)
        if handler:
            return handler(parsed)

        print(f"Unknown command: {parsed.command}", file=sys.stderr)
        return 1

    def _cmd_tax_period(self, args: argparse.Namespace) -> int:
        """Print the tax period of a date."""
        day = args.date or date.today()
        period = TaxPeriod.for_date(day)
        print(f"Date:      {day.isoformat()}")
        print(f"Tax year:  {period.tax_year}")
        print(f"Tax month: {period.tax_month}")
        return 0

    def _cmd_levy(self, args: argparse.Namespace) -> int:
        """Print the levy due."""
        levy = calculate_apprenticeship_levy(args.total_payroll)
        print(f"Total payroll:      £{args.total_payroll:,.2f}")
        print(f"Levy threshold:     £{LEVY_THRESHOLD:,.2f}")
        print(f"Apprenticeship levy: £{levy:,.2f}")
        return 0

    def _cmd_report(self, args: argparse.Namespace) -> int:
        """Render a report to a file or stdout."""
        return asyncio.run(self._report(args.submission_id, args.output))

    async def _report(self, submission_id: UUID, output: str | None) -> int:
        factory = await init_db()
        try:
            async with factory() as session:
                repository = SubmissionRepository(session)
                submission = await repository.get_submission(submission_id)
                if submission is None:
                    print(f"ERROR: submission {submission_id} not found", file=sys.stderr)
                    return 1

                text = await ReportRenderer(repository).render(submission_id)
                if not text:
                    print(
                        f"ERROR: no filing data for submission {submission_id}",
                        file=sys.stderr,
                    )
                    return 1
        finally:
            await dispose_db()

        if output == "-":
            sys.stdout.write(text)
            return 0

        path = output or report_filename(submission)
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        print(f"Report written to {path}")
        return 0

    def _cmd_process_due(self, args: argparse.Namespace) -> int:
        """Apply due scheduled transitions once."""
        return asyncio.run(self._process_due())

    async def _process_due(self) -> int:
        settings = get_settings()
        factory = await init_db()
        try:
            worker = TransitionWorker(
                factory,
                HmrcGatewayStub(submit_delay=0),
                settings.employer,
                acceptance_delay=timedelta(seconds=settings.acceptance_delay_seconds),
            )
            changed = await worker.run_once()
        finally:
            await dispose_db()

        print(f"Applied {changed} scheduled transition(s)")
        return 0


def main() -> int:
    """CLI entry point."""
    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    cli = RtiCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
