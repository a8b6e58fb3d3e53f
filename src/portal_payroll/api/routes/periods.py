"""Semi-monthly payroll period endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, HTTPException, Path, Query, status

from portal_payroll.api.dependencies import PeriodService, ReadinessService
from portal_payroll.api.schemas import (
    EnsurePeriodResponse,
    ErrorResponse,
    MissingRatesResponse,
    PayrollPeriodResponse,
    PeriodEarningsResponse,
    StoredPeriodListResponse,
)
from portal_payroll.calculators.periods import (
    SemiMonthlyPeriod,
    period_for_pay_date,
    period_for_work_date,
)

router = APIRouter(prefix="/payroll-periods", tags=["payroll-periods"])


def _to_response(period: SemiMonthlyPeriod) -> PayrollPeriodResponse:
    return PayrollPeriodResponse(
        period_id=period.period_id,
        work_period_start=period.work_period_start,
        work_period_end=period.work_period_end,
        pay_date=period.pay_date,
    )


@router.get("/for-work-date", response_model=PayrollPeriodResponse)
async def get_period_for_work_date(
    work_date: Annotated[date, Query()],
) -> PayrollPeriodResponse:
    """Period a work date belongs to."""
    return _to_response(period_for_work_date(work_date))


@router.get("", response_model=StoredPeriodListResponse)
async def list_periods(
    periods: PeriodService,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> StoredPeriodListResponse:
    """Stored payroll periods, most recent pay date first."""
    items = await periods.list_periods(limit)
    return StoredPeriodListResponse(items=items, total=len(items))


@router.get(
    "/{period_id}",
    responses={404: {"model": ErrorResponse}},
)
async def get_period(
    periods: PeriodService,
    period_id: Annotated[str, Path()],
) -> dict:
    """A stored payroll period document."""
    period = await periods.get_period(period_id)
    if period is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Payroll period not found",
        )
    return period


@router.post(
    "/{pay_date}",
    response_model=EnsurePeriodResponse,
    responses={400: {"model": ErrorResponse}},
)
async def ensure_period(
    periods: PeriodService,
    pay_date: Annotated[date, Path()],
) -> EnsurePeriodResponse:
    """Create the period paid on ``pay_date`` if it does not exist yet."""
    period = period_for_pay_date(pay_date)
    created = await periods.ensure_period(period)
    return EnsurePeriodResponse(**_to_response(period).model_dump(), created=created)


@router.get(
    "/{pay_date}/missing-rates",
    response_model=MissingRatesResponse,
    responses={400: {"model": ErrorResponse}},
)
async def get_missing_rates(
    readiness: ReadinessService,
    pay_date: Annotated[date, Path()],
) -> MissingRatesResponse:
    """Employees who would be skipped for lack of a rate in this period."""
    period = period_for_pay_date(pay_date)
    employee_ids = await readiness.missing_rate_employee_ids(period)
    return MissingRatesResponse(period_id=period.period_id, employee_ids=employee_ids)


@router.get(
    "/{pay_date}/earnings",
    response_model=PeriodEarningsResponse,
    responses={400: {"model": ErrorResponse}},
)
async def get_period_earnings(
    readiness: ReadinessService,
    pay_date: Annotated[date, Path()],
    approved_only: Annotated[bool, Query(alias="approvedOnly")] = False,
) -> PeriodEarningsResponse:
    period = period_for_pay_date(pay_date)
    earnings = await readiness.period_earnings(period, approved_only=approved_only)
    return PeriodEarningsResponse(
        period_id=earnings.period_id,
        timesheet_count=earnings.timesheet_count,
        total=earnings.total,
        by_employee=earnings.by_employee,
    )
