"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from paye_rti.config import Settings
from paye_rti.gateway.base import FilingGateway
from paye_rti.services.locking_service import SubmissionLocks
from paye_rti.services.submission_repository import SubmissionRepository
from paye_rti.services.submission_service import SubmissionService


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_gateway(request: Request) -> FilingGateway:
    return request.app.state.gateway


def get_locks(request: Request) -> SubmissionLocks:
    return request.app.state.locks


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Gateway = Annotated[FilingGateway, Depends(get_gateway)]
Locks = Annotated[SubmissionLocks, Depends(get_locks)]


def get_submission_service(
    db: DbSession,
    gateway: Gateway,
    settings: AppSettings,
    locks: Locks,
) -> SubmissionService:
    """Lifecycle manager bound to the request's session."""
    return SubmissionService.from_settings(db, gateway, settings, locks=locks)


def get_repository(db: DbSession) -> SubmissionRepository:
    return SubmissionRepository(db)


SubmissionServiceDep = Annotated[SubmissionService, Depends(get_submission_service)]
Repository = Annotated[SubmissionRepository, Depends(get_repository)]
