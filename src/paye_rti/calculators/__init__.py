"""Pure RTI calculations and filing types."""

from paye_rti.calculators.apprenticeship_levy import calculate_apprenticeship_levy
from paye_rti.calculators.tax_period import TaxPeriod, tax_month, tax_year
from paye_rti.calculators.types import (
    EmployeeAddress,
    FilingTotals,
    IssueSeverity,
    PeriodAdjustmentInput,
    RTIIssue,
    StarterDeclaration,
    SubmissionType,
    SubmitResult,
    ValidationResult,
    WorkerPayRecord,
)

__all__ = [
    "calculate_apprenticeship_levy",
    "TaxPeriod",
    "tax_month",
    "tax_year",
    "EmployeeAddress",
    "FilingTotals",
    "IssueSeverity",
    "PeriodAdjustmentInput",
    "RTIIssue",
    "StarterDeclaration",
    "SubmissionType",
    "SubmitResult",
    "ValidationResult",
    "WorkerPayRecord",
]
