"""UK fiscal period arithmetic.

The tax year runs from 6 April to 5 April. Periods are counted by calendar
month: April is tax month 1, March is tax month 12.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

FIRST_TAX_MONTH = 4  # April


def tax_month(day: date) -> int:
    """Return the fiscal month (1..12) for a calendar date."""
    month = day.month
    if month >= FIRST_TAX_MONTH:
        return month - 3
    return month + 9


def tax_year(day: date) -> str:
    """Return the fiscal year label ("2024/2025") for a calendar date."""
    year = day.year
    if day.month >= FIRST_TAX_MONTH:
        return f"{year}/{year + 1}"
    return f"{year - 1}/{year}"


@dataclass(frozen=True)
class TaxPeriod:
    """A fiscal year and month pair."""

    tax_year: str
    tax_month: int

    @classmethod
    def for_date(cls, day: date) -> TaxPeriod:
        return cls(tax_year=tax_year(day), tax_month=tax_month(day))

    def __str__(self) -> str:
        return f"{self.tax_year} M{self.tax_month:02d}"
