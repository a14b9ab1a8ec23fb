"""Plain-text RTI filing reports."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from decimal import Decimal
from uuid import UUID

from paye_rti.calculators.types import SubmissionType
from paye_rti.models import EpsFiling, FpsFiling, RtiSubmission
from paye_rti.services.submission_repository import SubmissionRepository

RULE_WIDTH = 60

REPORT_TITLES = {
    SubmissionType.PERIODIC_PAYMENT: "FULL PAYMENT SUBMISSION (FPS)",
    SubmissionType.PERIOD_ADJUSTMENT: "EMPLOYER PAYMENT SUMMARY (EPS)",
    SubmissionType.EMPLOYER_ALIGNMENT: "EMPLOYER ALIGNMENT SUBMISSION (EAS)",
    SubmissionType.NIL_PAYMENT: "NIL PAYMENT SUBMISSION (NVR)",
}


def money(value: Decimal | None) -> str:
    """Format an amount as pounds to two decimals."""
    return f"£{(value or Decimal('0')):.2f}"


def _section(title: str) -> list[str]:
    return [title, "-" * RULE_WIDTH]


def render_fps_report(fps: FpsFiling) -> str:
    """Render an FPS: header, totals summary and one block per worker."""
    lines = [
        REPORT_TITLES[SubmissionType.PERIODIC_PAYMENT],
        "=" * RULE_WIDTH,
        "",
        f"Employer Reference: {fps.employer_ref}",
        f"Tax Year: {fps.tax_year}",
        f"Tax Month: {fps.tax_month}",
        f"Payment Date: {fps.payment_date.strftime('%d/%m/%Y')}",
        f"Employees: {len(fps.employees)}",
        "",
        *_section("SUMMARY"),
        f"Total Gross Pay: {money(fps.total_payment)}",
        f"Total Tax: {money(fps.total_tax)}",
        f"Total Employee NI: {money(fps.total_employee_ni)}",
        f"Total Employer NI: {money(fps.total_employer_ni)}",
        f"Total Student Loan: {money(fps.total_student_loan)}",
        "",
        *_section("EMPLOYEES"),
    ]

    for index, employee in enumerate(fps.employees, start=1):
        name = " ".join(p for p in (employee.first_name, employee.last_name) if p)
        lines.extend(
            [
                f"{index}. {name}",
                f"   NI Number: {employee.ni_number or ''}",
                f"   Tax Code: {employee.tax_code or ''}",
                f"   Gross Pay: {money(employee.gross_pay)}",
                f"   Tax: {money(employee.income_tax)}",
                f"   NI: {money(employee.employee_ni)}",
                "",
            ]
        )

    return "\n".join(lines) + "\n"


def render_eps_report(eps: EpsFiling) -> str:
    """Render an EPS: header, reclaim figures and levy."""
    lines = [
        REPORT_TITLES[SubmissionType.PERIOD_ADJUSTMENT],
        "=" * RULE_WIDTH,
        "",
        f"Employer Reference: {eps.employer_ref}",
        f"Accounts Office Reference: {eps.accounts_office_ref}",
        f"Tax Year: {eps.tax_year}",
        f"Tax Month: {eps.tax_month}",
        f"No Payment For Period: {'Yes' if eps.no_payment_for_period else 'No'}",
        f"Employment Allowance: {'Yes' if eps.employment_allowance else 'No'}",
        "",
        *_section("RECLAIMS"),
        f"CIS Deductions Suffered: {money(eps.cis_deductions_suffered)}",
        f"Statutory Sick Pay: {money(eps.statutory_sick_pay)}",
        f"Statutory Maternity Pay: {money(eps.statutory_maternity_pay)}",
        f"Statutory Paternity Pay: {money(eps.statutory_paternity_pay)}",
        f"Statutory Adoption Pay: {money(eps.statutory_adoption_pay)}",
        f"Total Reclaimed: {money(eps.total_reclaimed)}",
        "",
        *_section("APPRENTICESHIP LEVY"),
        f"Levy Due: {money(eps.apprenticeship_levy)}",
    ]
    return "\n".join(lines) + "\n"


def render_summary_report(submission: RtiSubmission) -> str:
    """Header-only report for submissions without a filing body."""
    title = REPORT_TITLES.get(
        SubmissionType(submission.submission_type),
        f"RTI SUBMISSION ({submission.submission_type})",
    )
    lines = [
        title,
        "=" * RULE_WIDTH,
        "",
        f"Employer Reference: {submission.employer_ref}",
        f"Tax Year: {submission.tax_year}",
        f"Tax Month: {submission.tax_month}",
        f"Payroll Run: {submission.payroll_run_id}",
        f"Status: {submission.status}",
        f"Employees: {submission.employees_count}",
        "",
        *_section("SUMMARY"),
        f"Total Payment: {money(submission.total_payment)}",
        f"Total Tax: {money(submission.total_tax)}",
        f"Total NI: {money(submission.total_ni)}",
    ]
    return "\n".join(lines) + "\n"


def report_filename(submission: RtiSubmission) -> str:
    """Download filename for a submission's report."""
    return f"RTI_{submission.submission_type}_{submission.submission_id}.txt"


class ReportRenderer:
    """Renders a submission's report, choosing the layout by submission type."""

    def __init__(self, repository: SubmissionRepository):
        self.repository = repository
        self._renderers: dict[
            SubmissionType, Callable[[RtiSubmission], Awaitable[str]]
        ] = {
            SubmissionType.PERIODIC_PAYMENT: self._render_fps,
            SubmissionType.PERIOD_ADJUSTMENT: self._render_eps,
            SubmissionType.EMPLOYER_ALIGNMENT: self._render_summary,
            SubmissionType.NIL_PAYMENT: self._render_summary,
        }

    async def render(self, submission_id: UUID) -> str:
        """Report text, or "" when the submission or its filing is missing."""
        submission = await self.repository.get_submission(submission_id)
        if submission is None:
            return ""

        renderer = self._renderers[SubmissionType(submission.submission_type)]
        return await renderer(submission)

    async def _render_fps(self, submission: RtiSubmission) -> str:
        fps = await self.repository.get_fps_for_submission(submission.submission_id)
        if fps is None:
            return ""
        return render_fps_report(fps)

    async def _render_eps(self, submission: RtiSubmission) -> str:
        eps = await self.repository.get_eps_for_submission(submission.submission_id)
        if eps is None:
            return ""
        return render_eps_report(eps)

    async def _render_summary(self, submission: RtiSubmission) -> str:
        return render_summary_report(submission)
