"""Integration test fixtures: the FastAPI app over an in-memory database."""

from collections.abc import AsyncGenerator
from dataclasses import replace

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from paye_rti.api.app import create_app
from paye_rti.config import get_settings


@pytest.fixture
def app(session_factory, gateway) -> FastAPI:
    """App wired to the test database, with no background worker."""
    settings = replace(get_settings(), acceptance_delay_seconds=0)
    return create_app(
        settings=settings,
        session_factory=session_factory,
        gateway=gateway,
        run_worker=False,
    )


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def worker_payload(**overrides) -> dict:
    payload = {
        "employee_ref": "EMP001",
        "ni_number": "AB123456C",
        "first_name": "Jane",
        "last_name": "Smith",
        "date_of_birth": "1990-03-14",
        "address": {"line1": "1 High Street", "postcode": "SW1A 1AA"},
        "tax_code": "1257L",
        "gross_pay": "3000.00",
        "taxable_gross_pay": "3000.00",
        "income_tax": "400.00",
        "employee_ni": "150.00",
        "employer_ni": "200.00",
    }
    payload.update(overrides)
    return payload
