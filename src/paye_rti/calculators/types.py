"""Type definitions for RTI filings."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any


class SubmissionType(str, Enum):
    """RTI submission types."""

    PERIODIC_PAYMENT = "FPS"  # Full Payment Submission
    PERIOD_ADJUSTMENT = "EPS"  # Employer Payment Summary
    EMPLOYER_ALIGNMENT = "EAS"  # Employer Alignment Submission
    NIL_PAYMENT = "NVR"


class IssueSeverity(str, Enum):
    """Severity of a validation issue."""

    ERROR = "error"
    WARNING = "warning"


class StudentLoanPlan(str, Enum):
    """Student loan repayment plans."""

    PLAN_1 = "Plan1"
    PLAN_2 = "Plan2"
    PLAN_4 = "Plan4"
    POSTGRAD = "PostGrad"


class PaymentMethod(str, Enum):
    BACS = "BACS"
    CHEQUE = "Cheque"
    CASH = "Cash"


class PayFrequency(str, Enum):
    WEEKLY = "Weekly"
    FORTNIGHTLY = "Fortnightly"
    FOUR_WEEKLY = "FourWeekly"
    MONTHLY = "Monthly"


@dataclass
class EmployeeAddress:
    """Postal address of a worker."""

    line1: str | None = None
    line2: str | None = None
    line3: str | None = None
    line4: str | None = None
    postcode: str | None = None
    country: str | None = None


@dataclass
class StarterDeclaration:
    """New starter checklist answers."""

    statement_a: bool | None = None
    statement_b: bool | None = None
    statement_c: bool | None = None
    student_loan_deduction: bool | None = None
    postgrad_loan_deduction: bool | None = None

    def to_dict(self) -> dict[str, bool | None]:
        return {
            "statement_a": self.statement_a,
            "statement_b": self.statement_b,
            "statement_c": self.statement_c,
            "student_loan_deduction": self.student_loan_deduction,
            "postgrad_loan_deduction": self.postgrad_loan_deduction,
        }


@dataclass
class WorkerPayRecord:
    """One worker's pay and tax detail for a period.

    Produced by the upstream payroll run. Every field is optional so that
    partial records can be validated; money values are Decimals.
    """

    worker_id: str | None = None
    employee_ref: str | None = None
    ni_number: str | None = None
    title: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    date_of_birth: date | None = None
    gender: str | None = None  # M / F / X
    address: EmployeeAddress | None = None
    tax_code: str | None = None
    ni_category: str | None = None

    gross_pay: Decimal | None = None
    taxable_gross_pay: Decimal | None = None
    income_tax: Decimal | None = None
    employee_ni: Decimal | None = None
    employer_ni: Decimal | None = None
    student_loan: Decimal | None = None
    student_loan_plan: str | None = None
    pension_contribution: Decimal | None = None

    payment_method: str | None = None
    pay_frequency: str | None = None
    hours_worked: Decimal | None = None
    irregular_payment: bool | None = None
    leaving_date: date | None = None
    starter_declaration: StarterDeclaration | None = None

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    @property
    def postcode(self) -> str | None:
        return self.address.postcode if self.address else None


@dataclass(frozen=True)
class RTIIssue:
    """A single validation finding."""

    code: str
    message: str
    field: str | None = None
    severity: IssueSeverity = IssueSeverity.ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "field": self.field,
            "severity": self.severity.value,
        }


@dataclass
class ValidationResult:
    """Outcome of validating a record or a whole submission."""

    errors: list[RTIIssue] = field(default_factory=list)
    warnings: list[RTIIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def can_submit(self) -> bool:
        return not self.errors

    def extend(self, other: ValidationResult) -> None:
        """Union another result's findings into this one."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)

    @classmethod
    def failure(cls, code: str, message: str) -> ValidationResult:
        """Result carrying a single fatal error."""
        return cls(errors=[RTIIssue(code=code, message=message)])


@dataclass
class SubmitResult:
    """Outcome of submitting a filing to the gateway."""

    success: bool
    gateway_reference: str | None = None
    errors: list[RTIIssue] = field(default_factory=list)
    warnings: list[RTIIssue] = field(default_factory=list)


@dataclass
class PeriodAdjustmentInput:
    """Employer-level adjustments for an EPS. Unset figures default to zero."""

    no_payment_for_period: bool | None = None
    cis_deductions_suffered: Decimal | None = None
    statutory_sick_pay: Decimal | None = None
    statutory_maternity_pay: Decimal | None = None
    statutory_paternity_pay: Decimal | None = None
    statutory_adoption_pay: Decimal | None = None
    employment_allowance: bool | None = None
    apprenticeship_levy: Decimal | None = None


@dataclass(frozen=True)
class FilingTotals:
    """Aggregate totals of an FPS."""

    total_payment: Decimal = Decimal("0")
    total_tax: Decimal = Decimal("0")
    total_employee_ni: Decimal = Decimal("0")
    total_employer_ni: Decimal = Decimal("0")
    total_student_loan: Decimal = Decimal("0")

    @property
    def total_ni(self) -> Decimal:
        return self.total_employee_ni + self.total_employer_ni
