"""Schema and column type checks for the ORM models."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from paye_rti.models import FpsEmployee, RtiSubmission, ScheduledTransition, UTCDateTime

from tests.conftest import FIXED_NOW


class TestUpstreamInputColumns:
    """Worker fields are stored as given and judged later by validation."""

    @pytest.mark.parametrize(
        "column",
        ["ni_number", "gender", "ni_category", "tax_code", "postcode", "student_loan_plan"],
    )
    def test_worker_columns_are_unbounded(self, column):
        assert FpsEmployee.__table__.c[column].type.length is None

    async def test_badly_formatted_ni_is_stored_and_reported(
        self, builder, service, worker_factory
    ):
        fps = await builder.build_periodic_payment_filing(
            "run-1",
            [worker_factory(ni_number="AB 12 34 56 C", ni_category="AX")],
            FIXED_NOW.date(),
        )
        submission = await service.create_submission("FPS", "run-1", fps.fps_id)

        result = await service.validate(submission.submission_id)

        assert fps.employees[0].ni_number == "AB 12 34 56 C"
        assert [e.code for e in result.errors] == ["INVALID_NI"]


class TestTimestamps:
    """Datetimes come back timezone-aware in UTC on every backend."""

    async def test_aware_value_is_normalised_to_utc(self, session_factory):
        due = datetime(2024, 5, 15, 10, 30, tzinfo=timezone(timedelta(hours=1)))
        async with session_factory() as session:
            entry = ScheduledTransition(submission_id=uuid4(), event="accept", due_at=due)
            session.add(entry)
            await session.commit()
            transition_id = entry.transition_id

        async with session_factory() as session:
            stored = await session.get(ScheduledTransition, transition_id)

        assert stored.due_at == due
        assert stored.due_at.tzinfo == timezone.utc
        assert stored.due_at.hour == 9
        assert stored.created_at.tzinfo == timezone.utc

    async def test_naive_value_is_taken_as_utc(self, session_factory):
        async with session_factory() as session:
            entry = ScheduledTransition(
                submission_id=uuid4(), event="accept", due_at=datetime(2024, 5, 15, 9, 30)
            )
            session.add(entry)
            await session.commit()
            transition_id = entry.transition_id

        async with session_factory() as session:
            stored = await session.get(ScheduledTransition, transition_id)

        assert stored.due_at == FIXED_NOW

    async def test_due_query_compares_across_offsets(self, session_factory):
        async with session_factory() as session:
            session.add(
                ScheduledTransition(submission_id=uuid4(), event="accept", due_at=FIXED_NOW)
            )
            await session.commit()

        async with session_factory() as session:
            result = await session.execute(
                ScheduledTransition.__table__.select().where(
                    ScheduledTransition.due_at
                    <= datetime(2024, 5, 15, 10, 30, tzinfo=timezone(timedelta(hours=1)))
                )
            )
            assert len(result.all()) == 1

    def test_submission_timestamps_use_utc_type(self):
        for column in ("created_at", "submitted_at", "accepted_at", "rejected_at"):
            assert isinstance(RtiSubmission.__table__.c[column].type, UTCDateTime)
