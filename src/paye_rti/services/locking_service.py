"""Per-submission locks guarding in-flight gateway calls."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID


class SubmissionBusyError(Exception):
    """Raised when a submission already has an operation in flight."""

    def __init__(self, submission_id: UUID):
        self.submission_id = submission_id
        super().__init__(f"Submission {submission_id} is already being submitted")


class SubmissionLocks:
    """Registry of one asyncio.Lock per submission id.

    Guards a single process against double submission of the same record.
    Cross-process races are caught by the version check in the repository.
    Share one registry per application.
    """

    def __init__(self) -> None:
        self._locks: dict[UUID, asyncio.Lock] = {}

    def _lock_for(self, submission_id: UUID) -> asyncio.Lock:
        lock = self._locks.get(submission_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[submission_id] = lock
        return lock

    def is_locked(self, submission_id: UUID) -> bool:
        lock = self._locks.get(submission_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, submission_id: UUID) -> AsyncIterator[None]:
        """Hold the lock for a submission without waiting.

        Raises SubmissionBusyError if another task holds it.
        """
        lock = self._lock_for(submission_id)
        if lock.locked():
            raise SubmissionBusyError(submission_id)

        await lock.acquire()
        try:
            yield
        finally:
            lock.release()
            if not lock.locked():
                self._locks.pop(submission_id, None)
