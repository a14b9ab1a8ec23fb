"""Background task that applies due scheduled transitions."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from paye_rti.config import EmployerConfig
from paye_rti.gateway.base import FilingGateway
from paye_rti.services.locking_service import SubmissionLocks
from paye_rti.services.submission_service import SubmissionService

logger = logging.getLogger(__name__)


class TransitionWorker:
    """Polls the scheduled-transition table and applies due entries.

    Each pass runs in its own session and commits on success. Entries
    survive restarts because they live in the database.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        gateway: FilingGateway,
        employer: EmployerConfig,
        poll_interval: float = 1.0,
        locks: SubmissionLocks | None = None,
        acceptance_delay: timedelta = timedelta(seconds=3),
    ):
        self.session_factory = session_factory
        self.gateway = gateway
        self.employer = employer
        self.poll_interval = poll_interval
        self.locks = locks
        self.acceptance_delay = acceptance_delay
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if not self.running:
            self._task = asyncio.create_task(self._run())
            logger.info("Transition worker started (poll every %.1fs)", self.poll_interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Transition worker stopped")

    async def run_once(self) -> int:
        """Apply everything currently due. Returns the number of status changes."""
        async with self.session_factory() as session:
            service = SubmissionService(
                session,
                self.gateway,
                self.employer,
                locks=self.locks,
                acceptance_delay=self.acceptance_delay,
            )
            try:
                changed = await service.process_due_transitions()
                await session.commit()
            except Exception:
                await session.rollback()
                raise
        if changed:
            logger.info("Applied %d scheduled transition(s)", changed)
        return changed

    async def _run(self) -> None:
        while True:
            try:
                await self.run_once()
            except Exception:
                logger.exception("Transition worker pass failed")
            await asyncio.sleep(self.poll_interval)
