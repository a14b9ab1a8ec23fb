"""Submission lifecycle manager - orchestrates validate, submit and acceptance."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from paye_rti.calculators.tax_period import TaxPeriod
from paye_rti.calculators.types import (
    IssueSeverity,
    RTIIssue,
    SubmissionType,
    SubmitResult,
    ValidationResult,
)
from paye_rti.config import EmployerConfig
from paye_rti.gateway.base import FilingGateway, GatewayError, GatewayStatus
from paye_rti.models import EpsFiling, FpsFiling, RtiSubmission, ScheduledTransition, utcnow
from paye_rti.services.format_validator import validate_worker_records
from paye_rti.services.locking_service import SubmissionBusyError, SubmissionLocks
from paye_rti.services.state_machine import (
    SubmissionEvent,
    SubmissionStateMachine,
    SubmissionStatus,
)
from paye_rti.services.submission_repository import SubmissionRepository
from paye_rti.services.transition_scheduler import TransitionScheduler

if TYPE_CHECKING:
    from paye_rti.config import Settings

logger = logging.getLogger(__name__)


class SubmissionService:
    """Service for managing the RTI submission lifecycle.

    Operations:
    - create_submission: Draft a submission from a built filing document
    - validate: Run format rules without mutating anything
    - mark_ready: Validate and move draft -> ready
    - submit: Re-validate, send to the gateway, move to submitted and
      schedule acceptance
    - process_due_transitions: Apply scheduled acceptances once due
    - mark_corrected: Close an accepted/rejected submission that was re-filed
    """

    def __init__(
        self,
        session: AsyncSession,
        gateway: FilingGateway,
        employer: EmployerConfig,
        locks: SubmissionLocks | None = None,
        acceptance_delay: timedelta = timedelta(seconds=3),
        retry_delay: timedelta = timedelta(seconds=30),
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session = session
        self.gateway = gateway
        self.employer = employer
        self.locks = locks or SubmissionLocks()
        self.acceptance_delay = acceptance_delay
        self.retry_delay = retry_delay
        self.clock = clock
        self.repository = SubmissionRepository(session)
        self.scheduler = TransitionScheduler(session)

    @classmethod
    def from_settings(
        cls,
        session: AsyncSession,
        gateway: FilingGateway,
        settings: Settings,
        locks: SubmissionLocks | None = None,
    ) -> SubmissionService:
        return cls(
            session,
            gateway,
            settings.employer,
            locks=locks,
            acceptance_delay=timedelta(seconds=settings.acceptance_delay_seconds),
        )

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_submission(
        self,
        submission_type: SubmissionType | str,
        payroll_run_id: str,
        filing_id: UUID | None = None,
    ) -> RtiSubmission:
        """Create a draft submission for the current tax period.

        FPS and EPS submissions take ownership of the referenced filing and
        copy its totals; the filing must exist and not be owned yet.
        """
        submission_type = SubmissionType(submission_type)
        period = TaxPeriod.for_date(self.clock().date())

        submission = RtiSubmission(
            submission_id=uuid4(),
            submission_type=submission_type.value,
            tax_year=period.tax_year,
            tax_month=period.tax_month,
            status=SubmissionStatus.DRAFT.value,
            payroll_run_id=payroll_run_id,
            employer_ref=self.employer.employer_ref,
            employees_count=0,
            total_payment=Decimal("0"),
            total_tax=Decimal("0"),
            total_ni=Decimal("0"),
            version=1,
        )

        if submission_type == SubmissionType.PERIODIC_PAYMENT:
            fps = await self.repository.get_fps_filing(filing_id) if filing_id else None
            if fps is None:
                raise ValueError(f"FPS filing {filing_id} not found")
            await self._claim_filing(fps.submission_id, filing_id)

            totals = fps.totals
            submission.submission_id = fps.submission_id
            submission.filing_id = fps.fps_id
            submission.employer_ref = fps.employer_ref
            submission.employees_count = len(fps.employees)
            submission.total_payment = totals.total_payment
            submission.total_tax = totals.total_tax
            submission.total_ni = totals.total_ni

        elif submission_type == SubmissionType.PERIOD_ADJUSTMENT:
            eps = await self.repository.get_eps_filing(filing_id) if filing_id else None
            if eps is None:
                raise ValueError(f"EPS filing {filing_id} not found")
            await self._claim_filing(eps.submission_id, filing_id)

            submission.submission_id = eps.submission_id
            submission.filing_id = eps.eps_id
            submission.employer_ref = eps.employer_ref

        await self.repository.add_submission(submission)

        logger.info(
            "Created %s submission %s for payroll run %s (%s)",
            submission.submission_type,
            submission.submission_id,
            payroll_run_id,
            period,
        )
        return submission

    async def _claim_filing(self, submission_id: UUID, filing_id: UUID | None) -> None:
        if await self.repository.get_submission(submission_id) is not None:
            raise ValueError(f"Filing {filing_id} already belongs to submission {submission_id}")

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    async def validate(self, submission_id: UUID) -> ValidationResult:
        """Validate a submission and its filing document.

        Lookup failures are returned as errors. Nothing is written.
        """
        submission = await self.repository.get_submission(submission_id)
        if submission is None:
            return ValidationResult.failure("SUBMISSION_NOT_FOUND", "Submission not found")

        if submission.submission_type == SubmissionType.PERIODIC_PAYMENT.value:
            fps = await self.repository.get_fps_for_submission(submission_id)
            if fps is None:
                return ValidationResult.failure("FILING_DATA_NOT_FOUND", "FPS data not found")
            return validate_worker_records(fps.worker_records())

        if submission.submission_type == SubmissionType.PERIOD_ADJUSTMENT.value:
            eps = await self.repository.get_eps_for_submission(submission_id)
            if eps is None:
                return ValidationResult.failure("FILING_DATA_NOT_FOUND", "EPS data not found")
            return self._validate_eps(eps)

        return ValidationResult()

    def _validate_eps(self, eps: EpsFiling) -> ValidationResult:
        result = ValidationResult()
        for field in (*EpsFiling.RECLAIM_FIELDS, "apprenticeship_levy"):
            if getattr(eps, field) < 0:
                result.errors.append(
                    RTIIssue(
                        code="NEGATIVE_RECLAIM",
                        message=f"{field.replace('_', ' ').capitalize()} cannot be negative",
                        field=field,
                        severity=IssueSeverity.ERROR,
                    )
                )
        if eps.apprenticeship_levy > 0 and not self.employer.apprenticeship_levy:
            result.warnings.append(
                RTIIssue(
                    code="LEVY_NOT_LIABLE",
                    message="Apprenticeship levy reported by an employer not liable to pay it",
                    field="apprenticeship_levy",
                    severity=IssueSeverity.WARNING,
                )
            )
        return result

    async def mark_ready(self, submission_id: UUID) -> ValidationResult:
        """Move a draft to ready when it validates cleanly."""
        validation = await self.validate(submission_id)
        if not validation.can_submit:
            return validation

        submission = await self.repository.get_submission(submission_id)
        if submission is None:
            raise ValueError(f"Submission {submission_id} not found")
        await self.repository.apply_transition(submission, SubmissionEvent.MARK_READY)
        return validation

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(self, submission_id: UUID) -> SubmitResult:
        """Validate and send a submission to the gateway.

        Never raises: validation failures come back as errors, and any
        unexpected failure becomes a single SUBMISSION_FAILED error. The
        status only changes when the gateway acknowledged the filing.
        """
        try:
            async with self.locks.hold(submission_id):
                return await self._submit_locked(submission_id)
        except SubmissionBusyError as exc:
            return SubmitResult(
                success=False,
                errors=[RTIIssue(code="SUBMISSION_IN_PROGRESS", message=str(exc))],
            )

    async def _submit_locked(self, submission_id: UUID) -> SubmitResult:
        validation = await self.validate(submission_id)
        if not validation.can_submit:
            logger.info(
                "Submission %s blocked by %d validation error(s)",
                submission_id,
                len(validation.errors),
            )
            return SubmitResult(
                success=False,
                errors=validation.errors,
                warnings=validation.warnings,
            )

        submission = await self.repository.get_submission(submission_id)
        if submission is None:
            return SubmitResult(
                success=False,
                errors=[RTIIssue(code="SUBMISSION_NOT_FOUND", message="Submission not found")],
            )

        try:
            # Fail before contacting the gateway if the status forbids it
            SubmissionStateMachine.next_status(submission.status, SubmissionEvent.SUBMIT)

            async with self.session.begin_nested():
                # Another instance holding the row makes this fail or wait
                if not await self.repository.claim(submission, SubmissionStateMachine.PENDING):
                    raise SubmissionBusyError(submission_id)

                document = await self._gateway_document(submission)
                ack = await self.gateway.submit(document)
                if not ack.accepted:
                    raise GatewayError(ack.message or "Gateway refused the submission")

                now = self.clock()
                await self.repository.apply_transition(
                    submission,
                    SubmissionEvent.SUBMIT,
                    submitted_at=now,
                    gateway_reference=ack.reference,
                    errors=None,
                    warnings=[w.to_dict() for w in validation.warnings] or None,
                )
                await self.scheduler.schedule(
                    submission_id, SubmissionEvent.ACCEPT, self.acceptance_delay, now=now
                )
        except SubmissionBusyError as exc:
            await self.session.refresh(submission)
            logger.info("Submission %s was claimed by another writer", submission_id)
            return SubmitResult(
                success=False,
                errors=[RTIIssue(code="SUBMISSION_IN_PROGRESS", message=str(exc))],
            )
        except Exception as exc:
            logger.exception("Submission %s failed", submission_id)
            # The savepoint rolled back; drop the in-memory status and version too
            await self.session.refresh(submission)
            return SubmitResult(
                success=False,
                errors=[
                    RTIIssue(code="SUBMISSION_FAILED", message=str(exc) or type(exc).__name__)
                ],
            )

        logger.info("Submission %s submitted, gateway reference %s", submission_id, ack.reference)
        return SubmitResult(
            success=True,
            gateway_reference=ack.reference,
            warnings=validation.warnings,
        )

    async def _gateway_document(self, submission: RtiSubmission) -> dict[str, Any]:
        document: dict[str, Any] = {
            "submission_id": str(submission.submission_id),
            "submission_type": submission.submission_type,
            "employer_ref": submission.employer_ref,
            "accounts_office_ref": self.employer.accounts_office_ref,
            "employer": _employer_header(self.employer),
            "tax_year": submission.tax_year,
            "tax_month": submission.tax_month,
            "totals": {
                "payment": str(submission.total_payment),
                "tax": str(submission.total_tax),
                "ni": str(submission.total_ni),
            },
            "body": {},
        }

        if submission.submission_type == SubmissionType.PERIODIC_PAYMENT.value:
            fps = await self.repository.get_fps_for_submission(submission.submission_id)
            if fps is not None:
                document["body"] = _fps_body(fps)
        elif submission.submission_type == SubmissionType.PERIOD_ADJUSTMENT.value:
            eps = await self.repository.get_eps_for_submission(submission.submission_id)
            if eps is not None:
                document["body"] = _eps_body(eps)

        return document

    # ------------------------------------------------------------------
    # Deferred transitions
    # ------------------------------------------------------------------

    async def process_due_transitions(self, now: datetime | None = None) -> int:
        """Apply every scheduled transition that is due.

        Returns the number of submissions whose status changed.
        """
        now = now or self.clock()
        changed = 0

        for entry in await self.scheduler.due(now):
            submission = await self.repository.get_submission(entry.submission_id)
            if submission is None or not SubmissionStateMachine.can_apply(
                submission.status, entry.event
            ):
                status = submission.status if submission else "missing"
                self.scheduler.mark_cancelled(entry, f"Submission is {status}")
                logger.info(
                    "Cancelled scheduled %s for submission %s (status %s)",
                    entry.event,
                    entry.submission_id,
                    status,
                )
                continue

            try:
                async with self.session.begin_nested():
                    if await self._apply_scheduled(entry, submission, now):
                        changed += 1
            except Exception as exc:
                logger.exception(
                    "Scheduled %s for submission %s failed", entry.event, entry.submission_id
                )
                await self.session.refresh(entry)
                self.scheduler.reschedule(entry, self.retry_delay, str(exc), now=now)

        await self.session.flush()
        return changed

    async def _apply_scheduled(
        self,
        entry: ScheduledTransition,
        submission: RtiSubmission,
        now: datetime,
    ) -> bool:
        if entry.event != SubmissionEvent.ACCEPT.value:
            self.scheduler.mark_cancelled(entry, f"Unsupported scheduled event {entry.event}")
            return False

        status = await self.gateway.poll_status(submission.gateway_reference or "")

        if status.status == GatewayStatus.ACCEPTED:
            await self.repository.apply_transition(
                submission, SubmissionEvent.ACCEPT, accepted_at=now
            )
            self.scheduler.mark_applied(entry, now)
            logger.info("Submission %s accepted", submission.submission_id)
            return True

        if status.status == GatewayStatus.REJECTED:
            await self.repository.apply_transition(
                submission,
                SubmissionEvent.REJECT,
                rejected_at=now,
                errors=status.errors or None,
            )
            self.scheduler.mark_applied(entry, now)
            logger.warning(
                "Submission %s rejected: %s", submission.submission_id, status.message
            )
            return True

        self.scheduler.reschedule(entry, self.retry_delay, status.message or status.status, now=now)
        return False

    async def cancel_scheduled_transitions(self, submission_id: UUID) -> int:
        """Cancel pending deferred transitions for a submission."""
        return await self.scheduler.cancel(submission_id)

    # ------------------------------------------------------------------
    # Correction
    # ------------------------------------------------------------------

    async def mark_corrected(self, submission_id: UUID) -> RtiSubmission:
        """Close an accepted or rejected submission superseded by a re-filing."""
        submission = await self.repository.get_submission(submission_id)
        if submission is None:
            raise ValueError(f"Submission {submission_id} not found")

        await self.repository.apply_transition(submission, SubmissionEvent.CORRECT)
        await self.scheduler.cancel(submission_id)
        return submission

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_submission(self, submission_id: UUID) -> RtiSubmission | None:
        return await self.repository.get_submission(submission_id)

    async def list_submissions(
        self,
        status: str | None = None,
        submission_type: str | None = None,
    ) -> list[RtiSubmission]:
        return await self.repository.list_submissions(
            statuses=[status] if status else None,
            submission_type=submission_type,
        )

    async def pending_submissions(self) -> list[RtiSubmission]:
        """Submissions not yet sent (draft or ready)."""
        return await self.repository.list_submissions(SubmissionStateMachine.PENDING)

    async def submitted_submissions(self) -> list[RtiSubmission]:
        """Submissions sent and not rejected (submitted or accepted)."""
        return await self.repository.list_submissions(SubmissionStateMachine.SUBMITTED)


def _employer_header(employer: EmployerConfig) -> dict[str, Any]:
    address = employer.company_address
    return {
        "name": employer.company_name,
        "address": {
            "lines": [line for line in (address.line1, address.line2, address.line3) if line],
            "postcode": address.postcode,
            "country": address.country,
        },
        "contact": {
            "name": employer.contact_name,
            "phone": employer.contact_phone,
            "email": employer.contact_email,
        },
    }


def _fps_body(fps: FpsFiling) -> dict[str, Any]:
    return {
        "payment_date": fps.payment_date.isoformat(),
        "employees": [
            {
                "employee_ref": e.employee_ref,
                "ni_number": e.ni_number,
                "first_name": e.first_name,
                "last_name": e.last_name,
                "date_of_birth": e.date_of_birth.isoformat() if e.date_of_birth else None,
                "postcode": e.postcode,
                "tax_code": e.tax_code,
                "ni_category": e.ni_category,
                "gross_pay": str(e.gross_pay or 0),
                "taxable_gross_pay": str(e.taxable_gross_pay or 0),
                "income_tax": str(e.income_tax or 0),
                "employee_ni": str(e.employee_ni or 0),
                "employer_ni": str(e.employer_ni or 0),
                "student_loan": str(e.student_loan or 0),
                "student_loan_plan": e.student_loan_plan,
                "leaving_date": e.leaving_date.isoformat() if e.leaving_date else None,
            }
            for e in fps.employees
        ],
        "total_employee_ni": str(fps.total_employee_ni),
        "total_employer_ni": str(fps.total_employer_ni),
        "total_student_loan": str(fps.total_student_loan),
    }


def _eps_body(eps: EpsFiling) -> dict[str, Any]:
    body: dict[str, Any] = {
        field: str(getattr(eps, field)) for field in EpsFiling.RECLAIM_FIELDS
    }
    body.update(
        {
            "no_payment_for_period": eps.no_payment_for_period,
            "employment_allowance": eps.employment_allowance,
            "apprenticeship_levy": str(eps.apprenticeship_levy),
            "total_reclaimed": str(eps.total_reclaimed),
        }
    )
    return body
