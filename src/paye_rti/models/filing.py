"""Filing document models (FPS and EPS bodies)."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from paye_rti.calculators.types import (
    EmployeeAddress,
    FilingTotals,
    StarterDeclaration,
    WorkerPayRecord,
)
from paye_rti.models.base import Base, TimestampMixin


class FpsFiling(Base, TimestampMixin):
    """Full Payment Submission body for one payment date."""

    __tablename__ = "fps_filing"

    fps_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    # Pre-allocated id of the owning submission, created afterwards
    submission_id: Mapped[UUID] = mapped_column(nullable=False, unique=True, default=uuid4)
    payroll_run_id: Mapped[str] = mapped_column(String, nullable=False)
    tax_year: Mapped[str] = mapped_column(String(9), nullable=False)
    tax_month: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    employer_ref: Mapped[str] = mapped_column(String, nullable=False)
    accounts_office_ref: Mapped[str] = mapped_column(String, nullable=False)

    total_payment: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    total_tax: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    total_employee_ni: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    total_employer_ni: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    total_student_loan: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    # Relationships
    employees: Mapped[list[FpsEmployee]] = relationship(
        back_populates="filing",
        order_by="FpsEmployee.line_number",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    @property
    def totals(self) -> FilingTotals:
        return FilingTotals(
            total_payment=self.total_payment,
            total_tax=self.total_tax,
            total_employee_ni=self.total_employee_ni,
            total_employer_ni=self.total_employer_ni,
            total_student_loan=self.total_student_loan,
        )

    def worker_records(self) -> list[WorkerPayRecord]:
        return [employee.to_record() for employee in self.employees]


class FpsEmployee(Base):
    """One worker's line on an FPS."""

    __tablename__ = "fps_employee"

    fps_employee_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    fps_id: Mapped[UUID] = mapped_column(
        ForeignKey("fps_filing.fps_id", ondelete="CASCADE"),
        nullable=False,
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)

    worker_id: Mapped[str | None] = mapped_column(String, nullable=True)
    employee_ref: Mapped[str | None] = mapped_column(String, nullable=True)
    ni_number: Mapped[str | None] = mapped_column(String, nullable=True)
    title: Mapped[str | None] = mapped_column(String, nullable=True)
    first_name: Mapped[str | None] = mapped_column(String, nullable=True)
    last_name: Mapped[str | None] = mapped_column(String, nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str | None] = mapped_column(String, nullable=True)

    address_line1: Mapped[str | None] = mapped_column(String, nullable=True)
    address_line2: Mapped[str | None] = mapped_column(String, nullable=True)
    address_line3: Mapped[str | None] = mapped_column(String, nullable=True)
    address_line4: Mapped[str | None] = mapped_column(String, nullable=True)
    postcode: Mapped[str | None] = mapped_column(String, nullable=True)
    country: Mapped[str | None] = mapped_column(String, nullable=True)

    tax_code: Mapped[str | None] = mapped_column(String, nullable=True)
    ni_category: Mapped[str | None] = mapped_column(String, nullable=True)
    gross_pay: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    taxable_gross_pay: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    income_tax: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    employee_ni: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    employer_ni: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    student_loan: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    student_loan_plan: Mapped[str | None] = mapped_column(String, nullable=True)
    pension_contribution: Mapped[Decimal | None] = mapped_column(
        Numeric(14, 2), nullable=True
    )

    payment_method: Mapped[str | None] = mapped_column(String, nullable=True)
    pay_frequency: Mapped[str | None] = mapped_column(String, nullable=True)
    hours_worked: Mapped[Decimal | None] = mapped_column(Numeric(7, 2), nullable=True)
    irregular_payment: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    leaving_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    starter_declaration: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    __table_args__ = (
        UniqueConstraint("fps_id", "line_number", name="fps_employee_line_unique"),
    )

    # Relationships
    filing: Mapped[FpsFiling] = relationship(back_populates="employees")

    @classmethod
    def from_record(cls, record: WorkerPayRecord, line_number: int) -> FpsEmployee:
        address = record.address or EmployeeAddress()
        declaration = record.starter_declaration
        return cls(
            line_number=line_number,
            worker_id=record.worker_id,
            employee_ref=record.employee_ref,
            ni_number=record.ni_number,
            title=record.title,
            first_name=record.first_name,
            last_name=record.last_name,
            date_of_birth=record.date_of_birth,
            gender=record.gender,
            address_line1=address.line1,
            address_line2=address.line2,
            address_line3=address.line3,
            address_line4=address.line4,
            postcode=address.postcode,
            country=address.country,
            tax_code=record.tax_code,
            ni_category=record.ni_category,
            gross_pay=record.gross_pay,
            taxable_gross_pay=record.taxable_gross_pay,
            income_tax=record.income_tax,
            employee_ni=record.employee_ni,
            employer_ni=record.employer_ni,
            student_loan=record.student_loan,
            student_loan_plan=record.student_loan_plan,
            pension_contribution=record.pension_contribution,
            payment_method=record.payment_method,
            pay_frequency=record.pay_frequency,
            hours_worked=record.hours_worked,
            irregular_payment=record.irregular_payment,
            leaving_date=record.leaving_date,
            starter_declaration=declaration.to_dict() if declaration else None,
        )

    def to_record(self) -> WorkerPayRecord:
        return WorkerPayRecord(
            worker_id=self.worker_id,
            employee_ref=self.employee_ref,
            ni_number=self.ni_number,
            title=self.title,
            first_name=self.first_name,
            last_name=self.last_name,
            date_of_birth=self.date_of_birth,
            gender=self.gender,
            address=EmployeeAddress(
                line1=self.address_line1,
                line2=self.address_line2,
                line3=self.address_line3,
                line4=self.address_line4,
                postcode=self.postcode,
                country=self.country,
            ),
            tax_code=self.tax_code,
            ni_category=self.ni_category,
            gross_pay=self.gross_pay,
            taxable_gross_pay=self.taxable_gross_pay,
            income_tax=self.income_tax,
            employee_ni=self.employee_ni,
            employer_ni=self.employer_ni,
            student_loan=self.student_loan,
            student_loan_plan=self.student_loan_plan,
            pension_contribution=self.pension_contribution,
            payment_method=self.payment_method,
            pay_frequency=self.pay_frequency,
            hours_worked=self.hours_worked,
            irregular_payment=self.irregular_payment,
            leaving_date=self.leaving_date,
            starter_declaration=(
                StarterDeclaration(**self.starter_declaration)
                if self.starter_declaration
                else None
            ),
        )


class EpsFiling(Base, TimestampMixin):
    """Employer Payment Summary body for one tax period."""

    __tablename__ = "eps_filing"

    eps_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    submission_id: Mapped[UUID] = mapped_column(nullable=False, unique=True, default=uuid4)
    tax_year: Mapped[str] = mapped_column(String(9), nullable=False)
    tax_month: Mapped[int] = mapped_column(Integer, nullable=False)
    employer_ref: Mapped[str] = mapped_column(String, nullable=False)
    accounts_office_ref: Mapped[str] = mapped_column(String, nullable=False)

    no_payment_for_period: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    cis_deductions_suffered: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    statutory_sick_pay: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    statutory_maternity_pay: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    statutory_paternity_pay: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    statutory_adoption_pay: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    employment_allowance: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    apprenticeship_levy: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    total_reclaimed: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    __table_args__ = (
        CheckConstraint("tax_month BETWEEN 1 AND 12", name="eps_filing_tax_month_check"),
    )

    RECLAIM_FIELDS = (
        "cis_deductions_suffered",
        "statutory_sick_pay",
        "statutory_maternity_pay",
        "statutory_paternity_pay",
        "statutory_adoption_pay",
    )
