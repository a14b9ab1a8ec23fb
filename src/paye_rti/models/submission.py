"""RTI submission and audit models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from paye_rti.models.base import Base, TimestampMixin, UTCDateTime


class RtiSubmission(Base, TimestampMixin):
    """One statutory filing intent and its lifecycle status."""

    __tablename__ = "rti_submission"

    submission_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    submission_type: Mapped[str] = mapped_column(String(3), nullable=False)
    tax_year: Mapped[str] = mapped_column(String(9), nullable=False)
    tax_month: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="draft")

    payroll_run_id: Mapped[str] = mapped_column(String, nullable=False)
    filing_id: Mapped[UUID | None] = mapped_column(nullable=True)
    employer_ref: Mapped[str] = mapped_column(String, nullable=False)
    employees_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_payment: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )
    total_tax: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )
    total_ni: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )

    submitted_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(), nullable=True
    )
    accepted_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(), nullable=True
    )
    rejected_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(), nullable=True
    )
    gateway_reference: Mapped[str | None] = mapped_column(String, nullable=True)
    errors: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, nullable=True)
    warnings: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, nullable=True)

    # Optimistic concurrency counter, bumped on every status change
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint(
            "submission_type IN ('FPS', 'EPS', 'EAS', 'NVR')",
            name="rti_submission_type_check",
        ),
        CheckConstraint(
            "status IN ('draft', 'ready', 'submitted', 'accepted', 'rejected', 'corrected')",
            name="rti_submission_status_check",
        ),
        CheckConstraint(
            "tax_month BETWEEN 1 AND 12", name="rti_submission_tax_month_check"
        ),
        Index("ix_rti_submission_status", "status"),
    )


class RtiAuditEvent(Base, TimestampMixin):
    """Append-only audit trail entry."""

    __tablename__ = "rti_audit_event"

    audit_event_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    entity_type: Mapped[str] = mapped_column(String, nullable=False)
    entity_id: Mapped[UUID] = mapped_column(nullable=False)
    action: Mapped[str] = mapped_column(String, nullable=False)
    before_json: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    after_json: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    __table_args__ = (Index("ix_rti_audit_event_entity", "entity_type", "entity_id"),)
