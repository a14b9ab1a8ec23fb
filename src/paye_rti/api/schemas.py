"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from paye_rti.calculators.types import (
    EmployeeAddress,
    PeriodAdjustmentInput,
    RTIIssue,
    StarterDeclaration,
    SubmissionType,
    SubmitResult,
    ValidationResult,
    WorkerPayRecord,
)


class ErrorResponse(BaseModel):
    """Schema for error responses."""

    detail: str
    code: str | None = None


# ============================================================================
# Worker record input
# ============================================================================


class AddressIn(BaseModel):
    """Worker postal address."""

    line1: str | None = None
    line2: str | None = None
    line3: str | None = None
    line4: str | None = None
    postcode: str | None = None
    country: str | None = None


class StarterDeclarationIn(BaseModel):
    """New starter checklist answers."""

    statement_a: bool | None = None
    statement_b: bool | None = None
    statement_c: bool | None = None
    student_loan_deduction: bool | None = None
    postgrad_loan_deduction: bool | None = None


class WorkerPayRecordIn(BaseModel):
    """One worker's pay for the period, as produced by the payroll run.

    Fields are optional so that incomplete records can be stored and
    reported by validation rather than rejected at the API boundary.
    """

    worker_id: str | None = None
    employee_ref: str | None = None
    ni_number: str | None = None
    title: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    date_of_birth: date | None = None
    gender: str | None = Field(default=None, pattern=r"^[MFX]$")
    address: AddressIn | None = None
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
    starter_declaration: StarterDeclarationIn | None = None

    def to_record(self) -> WorkerPayRecord:
        data = self.model_dump(exclude={"address", "starter_declaration"})
        return WorkerPayRecord(
            **data,
            address=EmployeeAddress(**self.address.model_dump()) if self.address else None,
            starter_declaration=(
                StarterDeclaration(**self.starter_declaration.model_dump())
                if self.starter_declaration
                else None
            ),
        )


# ============================================================================
# Filing schemas
# ============================================================================


class FpsBuildRequest(BaseModel):
    """Schema for building a Full Payment Submission."""

    payroll_run_id: str = Field(min_length=1)
    payment_date: date
    workers: list[WorkerPayRecordIn] = Field(default_factory=list)


class FpsEmployeeResponse(BaseModel):
    """Schema for an FPS worker line."""

    model_config = ConfigDict(from_attributes=True)

    line_number: int
    employee_ref: str | None = None
    ni_number: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    tax_code: str | None = None
    gross_pay: Decimal | None = None
    income_tax: Decimal | None = None
    employee_ni: Decimal | None = None
    employer_ni: Decimal | None = None
    student_loan: Decimal | None = None


class FpsFilingResponse(BaseModel):
    """Schema for an FPS filing document."""

    model_config = ConfigDict(from_attributes=True)

    fps_id: UUID
    submission_id: UUID
    payroll_run_id: str
    tax_year: str
    tax_month: int
    payment_date: date
    employer_ref: str
    accounts_office_ref: str
    total_payment: Decimal
    total_tax: Decimal
    total_employee_ni: Decimal
    total_employer_ni: Decimal
    total_student_loan: Decimal
    employees: list[FpsEmployeeResponse]
    created_at: datetime


class EpsBuildRequest(BaseModel):
    """Schema for building an Employer Payment Summary. Unset figures are zero."""

    tax_year: str = Field(pattern=r"^\d{4}/\d{4}$")
    tax_month: int = Field(ge=1, le=12)
    no_payment_for_period: bool | None = None
    cis_deductions_suffered: Decimal | None = None
    statutory_sick_pay: Decimal | None = None
    statutory_maternity_pay: Decimal | None = None
    statutory_paternity_pay: Decimal | None = None
    statutory_adoption_pay: Decimal | None = None
    employment_allowance: bool | None = None
    apprenticeship_levy: Decimal | None = None

    def to_input(self) -> PeriodAdjustmentInput:
        return PeriodAdjustmentInput(**self.model_dump(exclude={"tax_year", "tax_month"}))


class EpsFilingResponse(BaseModel):
    """Schema for an EPS filing document."""

    model_config = ConfigDict(from_attributes=True)

    eps_id: UUID
    submission_id: UUID
    tax_year: str
    tax_month: int
    employer_ref: str
    accounts_office_ref: str
    no_payment_for_period: bool
    cis_deductions_suffered: Decimal
    statutory_sick_pay: Decimal
    statutory_maternity_pay: Decimal
    statutory_paternity_pay: Decimal
    statutory_adoption_pay: Decimal
    employment_allowance: bool
    apprenticeship_levy: Decimal
    total_reclaimed: Decimal
    created_at: datetime


# ============================================================================
# Submission schemas
# ============================================================================


class SubmissionCreate(BaseModel):
    """Schema for creating a draft submission."""

    submission_type: SubmissionType
    payroll_run_id: str = Field(min_length=1)
    filing_id: UUID | None = None


class SubmissionResponse(BaseModel):
    """Schema for submission response."""

    model_config = ConfigDict(from_attributes=True)

    submission_id: UUID
    submission_type: str
    tax_year: str
    tax_month: int
    status: str
    payroll_run_id: str
    filing_id: UUID | None = None
    employer_ref: str
    employees_count: int
    total_payment: Decimal
    total_tax: Decimal
    total_ni: Decimal
    gateway_reference: str | None = None
    errors: list[dict[str, Any]] | None = None
    warnings: list[dict[str, Any]] | None = None
    version: int
    created_at: datetime
    submitted_at: datetime | None = None
    accepted_at: datetime | None = None
    rejected_at: datetime | None = None


class SubmissionListResponse(BaseModel):
    """Schema for listing submissions."""

    items: list[SubmissionResponse]
    total: int


class IssueResponse(BaseModel):
    """Schema for a single validation finding."""

    code: str
    message: str
    field: str | None = None
    severity: str

    @classmethod
    def from_issue(cls, issue: RTIIssue) -> "IssueResponse":
        return cls(**issue.to_dict())


class ValidationResponse(BaseModel):
    """Schema for validation results."""

    is_valid: bool
    can_submit: bool
    errors: list[IssueResponse]
    warnings: list[IssueResponse]

    @classmethod
    def from_result(cls, result: ValidationResult) -> "ValidationResponse":
        return cls(
            is_valid=result.is_valid,
            can_submit=result.can_submit,
            errors=[IssueResponse.from_issue(e) for e in result.errors],
            warnings=[IssueResponse.from_issue(w) for w in result.warnings],
        )


class SubmitResponse(BaseModel):
    """Schema for submit results."""

    success: bool
    gateway_reference: str | None = None
    errors: list[IssueResponse]
    warnings: list[IssueResponse]

    @classmethod
    def from_result(cls, result: SubmitResult) -> "SubmitResponse":
        return cls(
            success=result.success,
            gateway_reference=result.gateway_reference,
            errors=[IssueResponse.from_issue(e) for e in result.errors],
            warnings=[IssueResponse.from_issue(w) for w in result.warnings],
        )


class AuditEventResponse(BaseModel):
    """Schema for an audit trail entry."""

    model_config = ConfigDict(from_attributes=True)

    audit_event_id: UUID
    action: str
    before_json: dict[str, Any] | None = None
    after_json: dict[str, Any] | None = None
    created_at: datetime


class ProcessDueResponse(BaseModel):
    """Schema for a scheduled-transition pass."""

    applied: int


# ============================================================================
# Calculation schemas
# ============================================================================


class TaxPeriodResponse(BaseModel):
    """Schema for a fiscal period lookup."""

    day: date
    tax_year: str
    tax_month: int


class LevyRequest(BaseModel):
    """Schema for an apprenticeship levy calculation."""

    total_payroll: Decimal = Field(ge=0)


class LevyResponse(BaseModel):
    """Schema for apprenticeship levy results."""

    total_payroll: Decimal
    levy: Decimal
    liable: bool
