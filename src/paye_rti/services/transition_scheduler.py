"""Durable, cancellable scheduling of deferred submission transitions."""

from __future__ import annotations

from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from paye_rti.models import ScheduledTransition, utcnow
from paye_rti.services.state_machine import SubmissionEvent


class TransitionState:
    PENDING = "pending"
    APPLIED = "applied"
    CANCELLED = "cancelled"


class TransitionScheduler:
    """Stores deferred transitions as rows keyed by submission id.

    Entries are applied by SubmissionService.process_due_transitions, which
    the transition worker (or the CLI) calls periodically.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def schedule(
        self,
        submission_id: UUID,
        event: SubmissionEvent,
        delay: timedelta,
        now: datetime | None = None,
    ) -> ScheduledTransition:
        """Queue an event to fire after ``delay``."""
        entry = ScheduledTransition(
            submission_id=submission_id,
            event=event.value,
            due_at=(now or utcnow()) + delay,
            state=TransitionState.PENDING,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def cancel(self, submission_id: UUID) -> int:
        """Cancel every pending entry for a submission. Returns count cancelled."""
        result = await self.session.execute(
            update(ScheduledTransition)
            .where(
                ScheduledTransition.submission_id == submission_id,
                ScheduledTransition.state == TransitionState.PENDING,
            )
            .values(state=TransitionState.CANCELLED)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def due(self, now: datetime | None = None, limit: int = 100) -> list[ScheduledTransition]:
        """Pending entries whose due time has passed, oldest first."""
        result = await self.session.execute(
            select(ScheduledTransition)
            .where(
                ScheduledTransition.state == TransitionState.PENDING,
                ScheduledTransition.due_at <= (now or utcnow()),
            )
            .order_by(ScheduledTransition.due_at)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def pending_for(self, submission_id: UUID) -> list[ScheduledTransition]:
        result = await self.session.execute(
            select(ScheduledTransition)
            .where(
                ScheduledTransition.submission_id == submission_id,
                ScheduledTransition.state == TransitionState.PENDING,
            )
            .order_by(ScheduledTransition.due_at)
        )
        return list(result.scalars().all())

    def mark_applied(self, entry: ScheduledTransition, now: datetime | None = None) -> None:
        entry.state = TransitionState.APPLIED
        entry.applied_at = now or utcnow()
        entry.attempts += 1

    def mark_cancelled(self, entry: ScheduledTransition, reason: str) -> None:
        entry.state = TransitionState.CANCELLED
        entry.last_error = reason

    def reschedule(
        self,
        entry: ScheduledTransition,
        delay: timedelta,
        reason: str,
        now: datetime | None = None,
    ) -> None:
        """Push an entry back, recording why it could not be applied yet."""
        entry.due_at = (now or utcnow()) + delay
        entry.attempts += 1
        entry.last_error = reason
