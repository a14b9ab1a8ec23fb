"""Field-format validation of FPS worker records.

Each rule is checked independently; one record can collect several errors
and warnings in a single pass.
"""

from __future__ import annotations

import re

from paye_rti.calculators.types import (
    IssueSeverity,
    RTIIssue,
    ValidationResult,
    WorkerPayRecord,
)

# Prefix letters D, F, I, Q, U, V never start an NI number; D, F, I, O, Q, U, V
# never appear second. Suffix is A-D.
NI_NUMBER_PATTERN = re.compile(r"^[A-CEGHJ-PR-TW-Z][A-CEGHJ-NPR-TW-Z][0-9]{6}[A-D]$")

TAX_CODE_PATTERN = re.compile(
    r"^([1-9][0-9]{0,5}[LMNPTY]|BR|0T|NT|D[0-8]|K[1-9][0-9]{0,5})$"
)


def is_valid_ni_number(ni_number: str | None) -> bool:
    """Check a National Insurance number against the HMRC format."""
    return bool(ni_number) and NI_NUMBER_PATTERN.match(ni_number) is not None


def is_valid_tax_code(tax_code: str | None) -> bool:
    """Check a PAYE tax code against the HMRC format."""
    return bool(tax_code) and TAX_CODE_PATTERN.match(tax_code) is not None


def _error(code: str, message: str, field: str) -> RTIIssue:
    return RTIIssue(code=code, message=message, field=field, severity=IssueSeverity.ERROR)


def _warning(code: str, message: str, field: str) -> RTIIssue:
    return RTIIssue(code=code, message=message, field=field, severity=IssueSeverity.WARNING)


def validate_worker_record(record: WorkerPayRecord) -> ValidationResult:
    """Validate one worker's FPS line."""
    errors: list[RTIIssue] = []
    warnings: list[RTIIssue] = []

    if not is_valid_ni_number(record.ni_number):
        errors.append(
            _error("INVALID_NI", "Invalid National Insurance number format", "ni_number")
        )

    if not is_valid_tax_code(record.tax_code):
        errors.append(_error("INVALID_TAX_CODE", "Invalid tax code format", "tax_code"))

    if not record.first_name:
        errors.append(_error("MISSING_FIRST_NAME", "First name is required", "first_name"))

    if not record.last_name:
        errors.append(_error("MISSING_LAST_NAME", "Last name is required", "last_name"))

    if not record.date_of_birth:
        errors.append(_error("MISSING_DOB", "Date of birth is required", "date_of_birth"))

    if not record.postcode:
        errors.append(_error("MISSING_POSTCODE", "Postcode is required", "postcode"))

    if record.gross_pay is not None and record.gross_pay < 0:
        errors.append(_error("NEGATIVE_PAY", "Gross pay cannot be negative", "gross_pay"))

    if record.income_tax is not None and record.income_tax < 0:
        errors.append(
            _error("NEGATIVE_TAX", "Income tax cannot be negative", "income_tax")
        )

    if (
        record.gross_pay is not None
        and record.taxable_gross_pay is not None
        and record.taxable_gross_pay > record.gross_pay
    ):
        warnings.append(
            _warning(
                "TAXABLE_EXCEEDS_GROSS",
                "Taxable gross pay exceeds total gross pay",
                "taxable_gross_pay",
            )
        )

    # A zero deduction is treated as no deduction
    if record.student_loan and not record.student_loan_plan:
        warnings.append(
            _warning(
                "MISSING_LOAN_PLAN",
                "Student loan plan type should be specified when deductions are present",
                "student_loan_plan",
            )
        )

    return ValidationResult(errors=errors, warnings=warnings)


def validate_worker_records(records: list[WorkerPayRecord]) -> ValidationResult:
    """Validate every worker line and union the findings."""
    result = ValidationResult()
    for record in records:
        result.extend(validate_worker_record(record))
    return result
