"""Filing document and calculation endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Path, Query, status

from paye_rti.api.dependencies import AppSettings, DbSession, Repository
from paye_rti.api.schemas import (
    EpsBuildRequest,
    EpsFilingResponse,
    ErrorResponse,
    FpsBuildRequest,
    FpsFilingResponse,
    LevyRequest,
    LevyResponse,
    TaxPeriodResponse,
)
from paye_rti.calculators.apprenticeship_levy import (
    LEVY_THRESHOLD,
    calculate_apprenticeship_levy,
)
from paye_rti.calculators.tax_period import TaxPeriod
from paye_rti.services.filing_builder import FilingBuilder

router = APIRouter(tags=["filings"])


# ============================================================================
# Filing documents
# ============================================================================


@router.post(
    "/filings/fps",
    response_model=FpsFilingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
)
async def build_fps(
    db: DbSession,
    settings: AppSettings,
    payload: FpsBuildRequest,
) -> FpsFilingResponse:
    """Build an FPS from payroll output. Create the submission separately."""
    builder = FilingBuilder(db, settings.employer)
    filing = await builder.build_periodic_payment_filing(
        payload.payroll_run_id,
        [worker.to_record() for worker in payload.workers],
        payload.payment_date,
    )
    await db.commit()
    return FpsFilingResponse.model_validate(filing)


@router.get(
    "/filings/fps/{fps_id}",
    response_model=FpsFilingResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_fps(
    repository: Repository,
    fps_id: Annotated[UUID, Path()],
) -> FpsFilingResponse:
    """Get an FPS filing by ID."""
    filing = await repository.get_fps_filing(fps_id)
    if filing is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="FPS filing not found",
        )
    return FpsFilingResponse.model_validate(filing)


@router.post(
    "/filings/eps",
    response_model=EpsFilingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
)
async def build_eps(
    db: DbSession,
    settings: AppSettings,
    payload: EpsBuildRequest,
) -> EpsFilingResponse:
    """Build an EPS for a tax period."""
    builder = FilingBuilder(db, settings.employer)
    filing = await builder.build_period_adjustment_filing(
        payload.tax_year,
        payload.tax_month,
        payload.to_input(),
    )
    await db.commit()
    return EpsFilingResponse.model_validate(filing)


@router.get(
    "/filings/eps/{eps_id}",
    response_model=EpsFilingResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_eps(
    repository: Repository,
    eps_id: Annotated[UUID, Path()],
) -> EpsFilingResponse:
    """Get an EPS filing by ID."""
    filing = await repository.get_eps_filing(eps_id)
    if filing is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="EPS filing not found",
        )
    return EpsFilingResponse.model_validate(filing)


# ============================================================================
# Calculations
# ============================================================================


@router.get("/tax-period", response_model=TaxPeriodResponse)
async def get_tax_period(
    day: Annotated[date | None, Query(alias="date")] = None,
) -> TaxPeriodResponse:
    """Fiscal year and month for a date (today when omitted)."""
    day = day or date.today()
    period = TaxPeriod.for_date(day)
    return TaxPeriodResponse(day=day, tax_year=period.tax_year, tax_month=period.tax_month)


@router.post("/levy", response_model=LevyResponse)
async def calculate_levy(payload: LevyRequest) -> LevyResponse:
    """Apprenticeship levy due on an annual pay bill."""
    return LevyResponse(
        total_payroll=payload.total_payroll,
        levy=calculate_apprenticeship_levy(payload.total_payroll),
        liable=payload.total_payroll > LEVY_THRESHOLD,
    )
