"""Assembly of FPS and EPS filing documents from payroll output."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from paye_rti.calculators.tax_period import TaxPeriod
from paye_rti.calculators.types import FilingTotals, PeriodAdjustmentInput, WorkerPayRecord
from paye_rti.config import EmployerConfig
from paye_rti.models import EpsFiling, FpsEmployee, FpsFiling

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _amount(value: Decimal | None) -> Decimal:
    return ZERO if value is None else Decimal(value)


def recompute_totals(records: Iterable[WorkerPayRecord]) -> FilingTotals:
    """Sum pay, tax, NI and student loan across worker records.

    Missing figures count as zero. Deterministic for the same inputs.
    """
    total_payment = ZERO
    total_tax = ZERO
    total_employee_ni = ZERO
    total_employer_ni = ZERO
    total_student_loan = ZERO

    for record in records:
        total_payment += _amount(record.gross_pay)
        total_tax += _amount(record.income_tax)
        total_employee_ni += _amount(record.employee_ni)
        total_employer_ni += _amount(record.employer_ni)
        total_student_loan += _amount(record.student_loan)

    return FilingTotals(
        total_payment=total_payment,
        total_tax=total_tax,
        total_employee_ni=total_employee_ni,
        total_employer_ni=total_employer_ni,
        total_student_loan=total_student_loan,
    )


class FilingBuilder:
    """Builds and persists filing documents.

    The owning submission is created afterwards by the lifecycle manager;
    each document carries the pre-allocated id that submission will use.
    """

    def __init__(self, session: AsyncSession, employer: EmployerConfig):
        self.session = session
        self.employer = employer

    async def build_periodic_payment_filing(
        self,
        payroll_run_id: str,
        worker_records: list[WorkerPayRecord],
        payment_date: date,
    ) -> FpsFiling:
        """Create an FPS for one payroll run and payment date."""
        period = TaxPeriod.for_date(payment_date)
        totals = recompute_totals(worker_records)

        filing = FpsFiling(
            payroll_run_id=payroll_run_id,
            tax_year=period.tax_year,
            tax_month=period.tax_month,
            payment_date=payment_date,
            employer_ref=self.employer.employer_ref,
            accounts_office_ref=self.employer.accounts_office_ref,
            total_payment=totals.total_payment,
            total_tax=totals.total_tax,
            total_employee_ni=totals.total_employee_ni,
            total_employer_ni=totals.total_employer_ni,
            total_student_loan=totals.total_student_loan,
            employees=[
                FpsEmployee.from_record(record, line_number=index)
                for index, record in enumerate(worker_records, start=1)
            ],
        )
        self.session.add(filing)
        await self.session.flush()

        logger.info(
            "Built FPS %s for payroll run %s (%s, %d workers)",
            filing.fps_id,
            payroll_run_id,
            period,
            len(worker_records),
        )
        return filing

    async def build_period_adjustment_filing(
        self,
        tax_year: str,
        tax_month: int,
        adjustments: PeriodAdjustmentInput | None = None,
    ) -> EpsFiling:
        """Create an EPS. Unset reclaim figures default to zero."""
        if not 1 <= tax_month <= 12:
            raise ValueError(f"tax_month must be between 1 and 12, got {tax_month}")

        adjustments = adjustments or PeriodAdjustmentInput()
        cis = _amount(adjustments.cis_deductions_suffered)
        ssp = _amount(adjustments.statutory_sick_pay)
        smp = _amount(adjustments.statutory_maternity_pay)
        spp = _amount(adjustments.statutory_paternity_pay)
        sap = _amount(adjustments.statutory_adoption_pay)

        employment_allowance = adjustments.employment_allowance
        if employment_allowance is None:
            employment_allowance = self.employer.employment_allowance

        filing = EpsFiling(
            tax_year=tax_year,
            tax_month=tax_month,
            employer_ref=self.employer.employer_ref,
            accounts_office_ref=self.employer.accounts_office_ref,
            no_payment_for_period=bool(adjustments.no_payment_for_period),
            cis_deductions_suffered=cis,
            statutory_sick_pay=ssp,
            statutory_maternity_pay=smp,
            statutory_paternity_pay=spp,
            statutory_adoption_pay=sap,
            employment_allowance=employment_allowance,
            apprenticeship_levy=_amount(adjustments.apprenticeship_levy),
            total_reclaimed=cis + ssp + smp + spp + sap,
        )
        self.session.add(filing)
        await self.session.flush()

        logger.info("Built EPS %s for %s month %d", filing.eps_id, tax_year, tax_month)
        return filing
