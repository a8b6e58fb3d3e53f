"""Revenue projection endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from portal_payroll.api.dependencies import AppSettings, ProjectionEngine
from portal_payroll.api.schemas import ErrorResponse, RevenueRangeResponse
from portal_payroll.models.agreements import CashflowPoint, FinancialProjection

router = APIRouter(prefix="/projections", tags=["projections"])


@router.get(
    "/revenue",
    response_model=FinancialProjection,
    responses={503: {"model": ErrorResponse}},
)
async def project_revenue(
    engine: ProjectionEngine,
    settings: AppSettings,
    horizon_days: Annotated[int | None, Query(ge=1, le=730)] = None,
) -> FinancialProjection:
    """Expected revenue from active service agreements."""
    return await engine.project_revenue(horizon_days or settings.projection_horizon_days)


@router.get(
    "/cashflow",
    response_model=list[CashflowPoint],
    responses={503: {"model": ErrorResponse}},
)
async def projected_cashflow(
    engine: ProjectionEngine,
    days: Annotated[int, Query(ge=1, le=730)] = 90,
) -> list[CashflowPoint]:
    """Daily projected inflows."""
    return await engine.projected_cashflow(days)


@router.get(
    "/revenue-range",
    response_model=RevenueRangeResponse,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def revenue_by_date_range(
    engine: ProjectionEngine,
    start: date,
    end: date,
) -> RevenueRangeResponse:
    """Projected revenue with payment dates between start and end (inclusive)."""
    if end < start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end must not be before start",
        )
    total = await engine.revenue_by_date_range(start, end)
    return RevenueRangeResponse(start=start, end=end, total=total)
