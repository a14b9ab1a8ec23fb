"""Tests for UK fiscal period arithmetic."""

from datetime import date, datetime

import pytest
from hypothesis import given, strategies as st

from paye_rti.calculators.tax_period import TaxPeriod, tax_month, tax_year


class TestTaxMonth:
    """April is month 1, March is month 12."""

    @pytest.mark.parametrize(
        "day,expected",
        [
            (date(2024, 4, 1), 1),
            (date(2024, 4, 6), 1),
            (date(2024, 5, 31), 2),
            (date(2024, 12, 25), 9),
            (date(2025, 1, 1), 10),
            (date(2025, 3, 31), 12),
        ],
    )
    def test_known_months(self, day, expected):
        assert tax_month(day) == expected

    def test_accepts_datetime(self):
        assert tax_month(datetime(2024, 7, 1, 12, 0)) == 4

    @given(st.dates())
    def test_always_in_range(self, day):
        assert 1 <= tax_month(day) <= 12


class TestTaxYear:
    """Fiscal year label changes at the start of April."""

    def test_april_starts_new_year(self):
        assert tax_year(date(2024, 4, 1)) == "2024/2025"

    def test_march_belongs_to_previous_year(self):
        assert tax_year(date(2024, 3, 31)) == "2023/2024"

    def test_january(self):
        assert tax_year(date(2025, 1, 15)) == "2024/2025"

    @given(st.dates(min_value=date(1000, 1, 1), max_value=date(9998, 12, 31)))
    def test_label_spans_consecutive_years(self, day):
        start, end = tax_year(day).split("/")
        assert int(end) == int(start) + 1
        assert int(start) in (day.year, day.year - 1)


class TestTaxPeriod:
    def test_for_date(self):
        period = TaxPeriod.for_date(date(2024, 5, 15))
        assert period.tax_year == "2024/2025"
        assert period.tax_month == 2

    def test_str(self):
        assert str(TaxPeriod.for_date(date(2025, 3, 1))) == "2024/2025 M12"
