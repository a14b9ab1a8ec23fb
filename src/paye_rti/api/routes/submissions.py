"""RTI submission API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Path, Query, status
from fastapi.responses import PlainTextResponse

from paye_rti.api.dependencies import DbSession, Repository, SubmissionServiceDep
from paye_rti.api.schemas import (
    AuditEventResponse,
    ErrorResponse,
    ProcessDueResponse,
    SubmissionCreate,
    SubmissionListResponse,
    SubmissionResponse,
    SubmitResponse,
    ValidationResponse,
)
from paye_rti.calculators.types import SubmissionType
from paye_rti.models import RtiSubmission
from paye_rti.services.report_renderer import ReportRenderer, report_filename
from paye_rti.services.state_machine import SubmissionStatus

router = APIRouter(prefix="/submissions", tags=["submissions"])


def _list_response(submissions: list[RtiSubmission]) -> SubmissionListResponse:
    return SubmissionListResponse(
        items=[SubmissionResponse.model_validate(s) for s in submissions],
        total=len(submissions),
    )


async def _require_submission(
    service: SubmissionServiceDep, submission_id: UUID
) -> RtiSubmission:
    submission = await service.get_submission(submission_id)
    if submission is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Submission not found",
        )
    return submission


# ============================================================================
# Submission CRUD
# ============================================================================


@router.post(
    "",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_submission(
    db: DbSession,
    service: SubmissionServiceDep,
    payload: SubmissionCreate,
) -> SubmissionResponse:
    """Create a draft submission for the current tax period."""
    submission = await service.create_submission(
        payload.submission_type,
        payload.payroll_run_id,
        payload.filing_id,
    )
    await db.commit()
    return SubmissionResponse.model_validate(submission)


@router.get("", response_model=SubmissionListResponse)
async def list_submissions(
    service: SubmissionServiceDep,
    status_filter: Annotated[SubmissionStatus | None, Query(alias="status")] = None,
    type_filter: Annotated[SubmissionType | None, Query(alias="type")] = None,
) -> SubmissionListResponse:
    """List submissions, oldest first, with optional filters."""
    submissions = await service.list_submissions(
        status=status_filter.value if status_filter else None,
        submission_type=type_filter.value if type_filter else None,
    )
    return _list_response(submissions)


@router.get("/pending", response_model=SubmissionListResponse)
async def list_pending(service: SubmissionServiceDep) -> SubmissionListResponse:
    """Submissions not yet sent (draft or ready)."""
    return _list_response(await service.pending_submissions())


@router.get("/submitted", response_model=SubmissionListResponse)
async def list_submitted(service: SubmissionServiceDep) -> SubmissionListResponse:
    """Submissions sent and not rejected (submitted or accepted)."""
    return _list_response(await service.submitted_submissions())


@router.post("/process-due", response_model=ProcessDueResponse)
async def process_due(db: DbSession, service: SubmissionServiceDep) -> ProcessDueResponse:
    """Apply scheduled transitions that are due now."""
    applied = await service.process_due_transitions()
    await db.commit()
    return ProcessDueResponse(applied=applied)


@router.get(
    "/{submission_id}",
    response_model=SubmissionResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_submission(
    service: SubmissionServiceDep,
    submission_id: Annotated[UUID, Path()],
) -> SubmissionResponse:
    """Get a specific submission by ID."""
    submission = await _require_submission(service, submission_id)
    return SubmissionResponse.model_validate(submission)


@router.get(
    "/{submission_id}/audit",
    response_model=list[AuditEventResponse],
    responses={404: {"model": ErrorResponse}},
)
async def get_audit_trail(
    service: SubmissionServiceDep,
    repository: Repository,
    submission_id: Annotated[UUID, Path()],
) -> list[AuditEventResponse]:
    """Creation and status-change history of a submission."""
    await _require_submission(service, submission_id)
    events = await repository.list_audit_events(submission_id)
    return [AuditEventResponse.model_validate(e) for e in events]


# ============================================================================
# Lifecycle
# ============================================================================


@router.post(
    "/{submission_id}/validate",
    response_model=ValidationResponse,
)
async def validate_submission(
    service: SubmissionServiceDep,
    submission_id: Annotated[UUID, Path()],
) -> ValidationResponse:
    """Run format validation. Lookup failures are reported as errors."""
    result = await service.validate(submission_id)
    return ValidationResponse.from_result(result)


@router.post(
    "/{submission_id}/ready",
    response_model=ValidationResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def mark_ready(
    db: DbSession,
    service: SubmissionServiceDep,
    submission_id: Annotated[UUID, Path()],
) -> ValidationResponse:
    """Validate and move a draft to ready."""
    await _require_submission(service, submission_id)
    result = await service.mark_ready(submission_id)
    await db.commit()
    return ValidationResponse.from_result(result)


@router.post(
    "/{submission_id}/submit",
    response_model=SubmitResponse,
)
async def submit_submission(
    db: DbSession,
    service: SubmissionServiceDep,
    submission_id: Annotated[UUID, Path()],
) -> SubmitResponse:
    """Send a submission to the filing gateway.

    Failures are reported in the body with success=false.
    """
    result = await service.submit(submission_id)
    await db.commit()
    return SubmitResponse.from_result(result)


@router.post(
    "/{submission_id}/correct",
    response_model=SubmissionResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def correct_submission(
    db: DbSession,
    service: SubmissionServiceDep,
    submission_id: Annotated[UUID, Path()],
) -> SubmissionResponse:
    """Mark an accepted or rejected submission as corrected."""
    await _require_submission(service, submission_id)
    submission = await service.mark_corrected(submission_id)
    await db.commit()
    return SubmissionResponse.model_validate(submission)


# ============================================================================
# Reports
# ============================================================================


@router.get(
    "/{submission_id}/report",
    response_class=PlainTextResponse,
    responses={404: {"model": ErrorResponse}},
)
async def download_report(
    service: SubmissionServiceDep,
    repository: Repository,
    submission_id: Annotated[UUID, Path()],
) -> PlainTextResponse:
    """Download the plain-text filing report."""
    submission = await _require_submission(service, submission_id)
    report = await ReportRenderer(repository).render(submission_id)
    if not report:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Filing data not found",
        )
    return PlainTextResponse(
        report,
        headers={
            "Content-Disposition": f'attachment; filename="{report_filename(submission)}"'
        },
    )
