"""Tests for FPS and EPS filing construction."""

from datetime import date
from decimal import Decimal

import pytest
from hypothesis import given, strategies as st

from paye_rti.calculators.types import PeriodAdjustmentInput, WorkerPayRecord
from paye_rti.config import EmployerConfig
from paye_rti.services.filing_builder import FilingBuilder, recompute_totals
from paye_rti.services.submission_repository import SubmissionRepository

from tests.conftest import PAYMENT_DATE, make_worker

amounts = st.none() | st.decimals(min_value=0, max_value=100000, places=2)


class TestRecomputeTotals:
    def test_sums_each_figure(self, valid_workers):
        totals = recompute_totals(valid_workers)
        assert totals.total_payment == Decimal("5000.00")
        assert totals.total_tax == Decimal("600.00")
        assert totals.total_employee_ni == Decimal("250.00")
        assert totals.total_employer_ni == Decimal("350.00")
        assert totals.total_student_loan == Decimal("0")
        assert totals.total_ni == Decimal("600.00")

    def test_missing_values_count_as_zero(self):
        totals = recompute_totals([WorkerPayRecord(), make_worker(student_loan=Decimal("12.50"))])
        assert totals.total_payment == Decimal("3000.00")
        assert totals.total_student_loan == Decimal("12.50")

    def test_empty(self):
        assert recompute_totals([]).total_payment == Decimal("0")

    @given(st.lists(st.tuples(amounts, amounts), max_size=8))
    def test_deterministic_and_order_independent(self, figures):
        records = [WorkerPayRecord(gross_pay=g, income_tax=t) for g, t in figures]
        assert recompute_totals(records) == recompute_totals(list(reversed(records)))
        assert recompute_totals(records).total_payment == sum(
            (g for g, _ in figures if g is not None), Decimal("0")
        )


class TestBuildPeriodicPaymentFiling:
    async def test_persists_filing_with_workers(self, builder, session, valid_workers):
        fps = await builder.build_periodic_payment_filing("run-1", valid_workers, PAYMENT_DATE)

        assert fps.tax_year == "2024/2025"
        assert fps.tax_month == 2
        assert fps.payment_date == PAYMENT_DATE
        assert fps.employer_ref == "123/AB45678"
        assert fps.accounts_office_ref == "123PA00045678"
        assert fps.total_payment == Decimal("5000.00")
        assert fps.total_tax == Decimal("600.00")
        assert fps.total_employee_ni == Decimal("250.00")
        assert fps.total_employer_ni == Decimal("350.00")
        assert [e.line_number for e in fps.employees] == [1, 2]
        assert fps.submission_id is not None

        stored = await SubmissionRepository(session).get_fps_filing(fps.fps_id)
        assert stored is not None
        assert [r.ni_number for r in stored.worker_records()] == ["AB123456C", "CE654321A"]

    async def test_worker_records_round_trip(self, builder, worker_factory):
        record = worker_factory(student_loan=Decimal("45"), student_loan_plan="Plan2")
        fps = await builder.build_periodic_payment_filing("run-1", [record], PAYMENT_DATE)
        assert fps.worker_records()[0] == record

    async def test_empty_payroll(self, builder):
        fps = await builder.build_periodic_payment_filing("run-0", [], date(2025, 3, 28))
        assert fps.tax_month == 12
        assert fps.tax_year == "2024/2025"
        assert fps.total_payment == Decimal("0")
        assert fps.employees == []

    async def test_each_filing_gets_its_own_submission_id(self, builder, valid_workers):
        first = await builder.build_periodic_payment_filing("run-1", valid_workers, PAYMENT_DATE)
        second = await builder.build_periodic_payment_filing("run-2", valid_workers, PAYMENT_DATE)
        assert first.submission_id != second.submission_id


class TestBuildPeriodAdjustmentFiling:
    async def test_defaults_to_zero(self, builder):
        eps = await builder.build_period_adjustment_filing("2024/2025", 3)
        assert eps.total_reclaimed == Decimal("0")
        assert eps.statutory_sick_pay == Decimal("0")
        assert eps.apprenticeship_levy == Decimal("0")
        assert eps.no_payment_for_period is False

    async def test_sums_reclaims(self, builder):
        eps = await builder.build_period_adjustment_filing(
            "2024/2025",
            3,
            PeriodAdjustmentInput(
                cis_deductions_suffered=Decimal("100"),
                statutory_sick_pay=Decimal("200"),
                statutory_maternity_pay=Decimal("300"),
                statutory_paternity_pay=Decimal("400"),
                statutory_adoption_pay=Decimal("500"),
                apprenticeship_levy=Decimal("416.67"),
            ),
        )
        assert eps.total_reclaimed == Decimal("1500")
        assert eps.apprenticeship_levy == Decimal("416.67")

    async def test_employment_allowance_defaults_to_employer_config(self, session):
        builder = FilingBuilder(session, EmployerConfig(employment_allowance=True))
        eps = await builder.build_period_adjustment_filing("2024/2025", 1)
        assert eps.employment_allowance is True

        eps = await builder.build_period_adjustment_filing(
            "2024/2025", 1, PeriodAdjustmentInput(employment_allowance=False)
        )
        assert eps.employment_allowance is False

    @pytest.mark.parametrize("month", [0, 13])
    async def test_rejects_bad_month(self, builder, month):
        with pytest.raises(ValueError):
            await builder.build_period_adjustment_filing("2024/2025", month)
