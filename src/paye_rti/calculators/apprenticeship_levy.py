"""Apprenticeship Levy calculation."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

LEVY_RATE = Decimal("0.005")
LEVY_ALLOWANCE = Decimal("15000")
LEVY_THRESHOLD = Decimal("3000000")


def calculate_apprenticeship_levy(total_payroll: Decimal) -> Decimal:
    """Annual levy due on an employer's pay bill.

    0.5% of the pay bill less a 15,000 allowance. Pay bills at or below
    3,000,000 owe nothing.
    """
    total_payroll = Decimal(str(total_payroll))
    if total_payroll <= LEVY_THRESHOLD:
        return Decimal("0.00")

    levy = total_payroll * LEVY_RATE - LEVY_ALLOWANCE
    return max(Decimal("0"), levy).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
