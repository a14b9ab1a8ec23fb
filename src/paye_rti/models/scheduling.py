"""Durable scheduled status transitions."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from paye_rti.models.base import Base, TimestampMixin, UTCDateTime


class ScheduledTransition(Base, TimestampMixin):
    """A deferred lifecycle event for a submission.

    Rows survive restarts; the transition worker applies them once due.
    """

    __tablename__ = "rti_scheduled_transition"

    transition_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    submission_id: Mapped[UUID] = mapped_column(nullable=False)
    event: Mapped[str] = mapped_column(String, nullable=False)
    due_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    state: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    applied_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(), nullable=True
    )
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "state IN ('pending', 'applied', 'cancelled')",
            name="rti_scheduled_transition_state_check",
        ),
        Index("ix_rti_scheduled_transition_due", "state", "due_at"),
        Index("ix_rti_scheduled_transition_submission", "submission_id"),
    )
