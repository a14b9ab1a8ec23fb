"""Persistence for submissions, filing documents and their audit trail."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from paye_rti.models import EpsFiling, FpsFiling, RtiAuditEvent, RtiSubmission
from paye_rti.services.state_machine import SubmissionEvent, SubmissionStateMachine


class ConcurrentModificationError(Exception):
    """Raised when a submission changed between read and conditional update."""

    def __init__(self, submission_id: UUID, expected_version: int):
        self.submission_id = submission_id
        self.expected_version = expected_version
        super().__init__(
            f"Submission {submission_id} was modified concurrently "
            f"(expected version {expected_version})"
        )


class SubmissionRepository:
    """Create, read, update and query operations over the submission store.

    Status changes are conditional on the row version, so two writers racing
    on the same submission cannot both succeed.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # ------------------------------------------------------------------
    # Submissions
    # ------------------------------------------------------------------

    async def add_submission(self, submission: RtiSubmission) -> RtiSubmission:
        self.session.add(submission)
        await self.session.flush()
        await self._record_audit(
            submission.submission_id,
            action="created",
            after={"status": submission.status, "type": submission.submission_type},
        )
        return submission

    async def get_submission(self, submission_id: UUID) -> RtiSubmission | None:
        result = await self.session.execute(
            select(RtiSubmission).where(RtiSubmission.submission_id == submission_id)
        )
        return result.scalar_one_or_none()

    async def list_submissions(
        self,
        statuses: Iterable[str] | None = None,
        submission_type: str | None = None,
    ) -> list[RtiSubmission]:
        query = select(RtiSubmission)
        if statuses is not None:
            values = [getattr(status, "value", status) for status in statuses]
            query = query.where(RtiSubmission.status.in_(values))
        if submission_type is not None:
            query = query.where(RtiSubmission.submission_type == submission_type)
        query = query.order_by(RtiSubmission.created_at)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def claim(self, submission: RtiSubmission, statuses: Iterable[str]) -> bool:
        """Take a submission for an operation by bumping its version.

        Succeeds only while the row still has the version this session read
        and one of the given statuses. The updated row stays locked by the
        open transaction until it ends.
        """
        values = [getattr(status, "value", status) for status in statuses]
        result = await self.session.execute(
            update(RtiSubmission)
            .where(
                RtiSubmission.submission_id == submission.submission_id,
                RtiSubmission.version == submission.version,
                RtiSubmission.status.in_(values),
            )
            .values(version=submission.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return False

        await self.session.refresh(submission)
        return True

    async def apply_transition(
        self,
        submission: RtiSubmission,
        event: SubmissionEvent,
        **values: Any,
    ) -> RtiSubmission:
        """Move a submission along the state machine.

        Raises InvalidTransitionError if the event is not allowed, and
        ConcurrentModificationError if another writer got there first.
        """
        from_status = submission.status
        to_status = SubmissionStateMachine.next_status(from_status, event)
        expected_version = submission.version

        result = await self.session.execute(
            update(RtiSubmission)
            .where(
                RtiSubmission.submission_id == submission.submission_id,
                RtiSubmission.version == expected_version,
                RtiSubmission.status == from_status,
            )
            .values(status=to_status.value, version=expected_version + 1, **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ConcurrentModificationError(submission.submission_id, expected_version)

        await self.session.refresh(submission)

        await self._record_audit(
            submission.submission_id,
            action=f"status_change:{from_status}:{to_status.value}",
            before={"status": from_status, "version": expected_version},
            after={"status": to_status.value, "version": expected_version + 1},
        )
        return submission

    # ------------------------------------------------------------------
    # Filing documents
    # ------------------------------------------------------------------

    async def get_fps_filing(self, fps_id: UUID) -> FpsFiling | None:
        result = await self.session.execute(
            select(FpsFiling).where(FpsFiling.fps_id == fps_id)
        )
        return result.scalar_one_or_none()

    async def get_fps_for_submission(self, submission_id: UUID) -> FpsFiling | None:
        result = await self.session.execute(
            select(FpsFiling).where(FpsFiling.submission_id == submission_id)
        )
        return result.scalar_one_or_none()

    async def get_eps_filing(self, eps_id: UUID) -> EpsFiling | None:
        result = await self.session.execute(
            select(EpsFiling).where(EpsFiling.eps_id == eps_id)
        )
        return result.scalar_one_or_none()

    async def get_eps_for_submission(self, submission_id: UUID) -> EpsFiling | None:
        result = await self.session.execute(
            select(EpsFiling).where(EpsFiling.submission_id == submission_id)
        )
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------

    async def list_audit_events(self, submission_id: UUID) -> list[RtiAuditEvent]:
        result = await self.session.execute(
            select(RtiAuditEvent)
            .where(
                RtiAuditEvent.entity_type == "rti_submission",
                RtiAuditEvent.entity_id == submission_id,
            )
            .order_by(RtiAuditEvent.created_at)
        )
        return list(result.scalars().all())

    async def _record_audit(
        self,
        submission_id: UUID,
        action: str,
        before: dict[str, Any] | None = None,
        after: dict[str, Any] | None = None,
    ) -> None:
        event = RtiAuditEvent(
            entity_type="rti_submission",
            entity_id=submission_id,
            action=action,
            before_json=before,
            after_json=after,
        )
        self.session.add(event)
        await self.session.flush()

