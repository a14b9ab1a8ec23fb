"""Tests for per-submission locks."""

import asyncio
from uuid import uuid4

import pytest

from paye_rti.services.locking_service import SubmissionBusyError, SubmissionLocks


class TestSubmissionLocks:
    async def test_hold_and_release(self, locks):
        submission_id = uuid4()
        async with locks.hold(submission_id):
            assert locks.is_locked(submission_id)
        assert not locks.is_locked(submission_id)

    async def test_second_holder_is_refused(self, locks):
        submission_id = uuid4()
        async with locks.hold(submission_id):
            with pytest.raises(SubmissionBusyError) as exc_info:
                async with locks.hold(submission_id):
                    pass
        assert exc_info.value.submission_id == submission_id

    async def test_different_submissions_do_not_block(self, locks):
        async with locks.hold(uuid4()):
            async with locks.hold(uuid4()):
                pass

    async def test_released_on_error(self, locks):
        submission_id = uuid4()
        with pytest.raises(RuntimeError):
            async with locks.hold(submission_id):
                raise RuntimeError("boom")
        assert not locks.is_locked(submission_id)

    async def test_concurrent_tasks(self):
        locks = SubmissionLocks()
        submission_id = uuid4()
        entered = asyncio.Event()
        release = asyncio.Event()

        async def holder():
            async with locks.hold(submission_id):
                entered.set()
                await release.wait()

        task = asyncio.create_task(holder())
        await entered.wait()
        with pytest.raises(SubmissionBusyError):
            async with locks.hold(submission_id):
                pass
        release.set()
        await task
        assert not locks.is_locked(submission_id)
