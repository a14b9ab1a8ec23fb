"""Pytest fixtures for PAYE RTI engine tests."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import AsyncGenerator, Callable

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from paye_rti.calculators.types import EmployeeAddress, WorkerPayRecord
from paye_rti.config import EmployerConfig
from paye_rti.database import get_engine, make_session_factory
from paye_rti.gateway import HmrcGatewayStub
from paye_rti.models import Base
from paye_rti.services.filing_builder import FilingBuilder
from paye_rti.services.locking_service import SubmissionLocks
from paye_rti.services.submission_service import SubmissionService

# Use in-memory SQLite for tests (with async support)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# 15 May 2024 falls in tax year 2024/2025, month 2
FIXED_NOW = datetime(2024, 5, 15, 9, 30, tzinfo=timezone.utc)
PAYMENT_DATE = date(2024, 5, 31)


def make_worker(**overrides) -> WorkerPayRecord:
    """A complete, valid worker record; override any field."""
    values = dict(
        worker_id="W001",
        employee_ref="EMP001",
        ni_number="AB123456C",
        first_name="Jane",
        last_name="Smith",
        date_of_birth=date(1990, 3, 14),
        gender="F",
        address=EmployeeAddress(line1="1 High Street", postcode="SW1A 1AA"),
        tax_code="1257L",
        ni_category="A",
        gross_pay=Decimal("3000.00"),
        taxable_gross_pay=Decimal("3000.00"),
        income_tax=Decimal("400.00"),
        employee_ni=Decimal("150.00"),
        employer_ni=Decimal("200.00"),
        payment_method="BACS",
        pay_frequency="Monthly",
    )
    values.update(overrides)
    return WorkerPayRecord(**values)


@pytest.fixture
def worker_factory() -> Callable[..., WorkerPayRecord]:
    return make_worker


@pytest.fixture
def valid_workers() -> list[WorkerPayRecord]:
    """Two workers totalling 5000 gross, 600 tax, 250 employee NI, 350 employer NI."""
    return [
        make_worker(),
        make_worker(
            worker_id="W002",
            employee_ref="EMP002",
            ni_number="CE654321A",
            first_name="Tom",
            last_name="Jones",
            gender="M",
            tax_code="BR",
            gross_pay=Decimal("2000.00"),
            taxable_gross_pay=Decimal("2000.00"),
            income_tax=Decimal("200.00"),
            employee_ni=Decimal("100.00"),
            employer_ni=Decimal("150.00"),
        ),
    ]


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh in-memory database for each test."""
    engine = get_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(engine)


@pytest.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def employer() -> EmployerConfig:
    return EmployerConfig()


@pytest.fixture
def gateway() -> HmrcGatewayStub:
    """Gateway stub that answers immediately."""
    return HmrcGatewayStub(submit_delay=0)


@pytest.fixture
def locks() -> SubmissionLocks:
    return SubmissionLocks()


@pytest.fixture
def builder(session: AsyncSession, employer: EmployerConfig) -> FilingBuilder:
    return FilingBuilder(session, employer)


@pytest.fixture
def service(
    session: AsyncSession,
    gateway: HmrcGatewayStub,
    employer: EmployerConfig,
    locks: SubmissionLocks,
) -> SubmissionService:
    return SubmissionService(
        session,
        gateway,
        employer,
        locks=locks,
        clock=lambda: FIXED_NOW,
    )
