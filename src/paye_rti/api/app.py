"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from paye_rti import __version__
from paye_rti.api.routes import filings_router, health_router, submissions_router
from paye_rti.config import Settings, get_settings
from paye_rti.database import dispose_db, init_db
from paye_rti.gateway import FilingGateway, HmrcGatewayStub
from paye_rti.services.locking_service import SubmissionLocks
from paye_rti.services.state_machine import InvalidTransitionError
from paye_rti.services.submission_repository import ConcurrentModificationError
from paye_rti.services.transition_worker import TransitionWorker

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    state = app.state
    settings: Settings = state.settings

    # Startup
    owns_engine = state.session_factory is None
    if owns_engine:
        state.session_factory = await init_db()

    if state.run_worker:
        state.worker = TransitionWorker(
            state.session_factory,
            state.gateway,
            settings.employer,
            poll_interval=settings.scheduler_poll_seconds,
            locks=state.locks,
            acceptance_delay=timedelta(seconds=settings.acceptance_delay_seconds),
        )
        state.worker.start()

    yield

    # Shutdown
    if state.worker is not None:
        await state.worker.stop()
        state.worker = None
    if owns_engine:
        await dispose_db()


def create_app(
    settings: Settings | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    gateway: FilingGateway | None = None,
    run_worker: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Passing a session factory skips engine setup; tests use this to run
    against an in-memory database.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="PAYE RTI Engine API",
        description="UK PAYE Real Time Information filings and submission lifecycle",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.gateway = gateway or HmrcGatewayStub(
        submit_delay=settings.gateway_submit_delay_seconds
    )
    app.state.locks = SubmissionLocks()
    app.state.run_worker = run_worker
    app.state.worker = None

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition_handler(
        request: Request, exc: InvalidTransitionError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": str(exc), "code": "INVALID_TRANSITION"},
        )

    @app.exception_handler(ConcurrentModificationError)
    async def concurrent_modification_handler(
        request: Request, exc: ConcurrentModificationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": str(exc), "code": "CONCURRENT_MODIFICATION"},
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": str(exc), "code": "BAD_REQUEST"},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(filings_router, prefix="/api/v1")
    app.include_router(submissions_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
