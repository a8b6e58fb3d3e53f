"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Timesheet reconciliation schemas
# ============================================================================


class ReconcileRequest(BaseModel):
    """Window of clock-in times to reconcile, [window_start, window_end)."""

    model_config = ConfigDict(populate_by_name=True)

    window_start: datetime = Field(alias="windowStart")
    window_end: datetime = Field(alias="windowEnd")


class ReconcileResponse(BaseModel):
    """Aggregate counts of a reconciliation run."""

    created: int
    skipped: int
    total: int
    skipped_duplicate: int = 0
    skipped_no_match: int = 0
    skipped_no_rate: int = 0
    skipped_invalid: int = 0
    timesheet_ids: list[str] = Field(default_factory=list)


class RevertApprovalRequest(BaseModel):
    """Timesheets whose job-completion approval should be undone."""

    model_config = ConfigDict(populate_by_name=True)

    timesheet_ids: list[str] = Field(alias="timesheetIds")


class RevertApprovalResponse(BaseModel):
    reverted: int


class JobCompletionResponse(BaseModel):
    """Timesheets admin-approved by a job completion."""

    job_id: str
    updated: int
    timesheet_ids: list[str]


# ============================================================================
# Payroll period schemas
# ============================================================================


class PayrollPeriodResponse(BaseModel):
    """Semi-monthly period boundaries."""

    period_id: str
    work_period_start: date
    work_period_end: date
    pay_date: date


class EnsurePeriodResponse(PayrollPeriodResponse):
    created: bool


class StoredPeriodListResponse(BaseModel):
    items: list[dict[str, Any]]
    total: int


class MissingRatesResponse(BaseModel):
    """Employees on payroll-relevant jobs who have no effective rate."""

    period_id: str
    employee_ids: list[str]


class PeriodEarningsResponse(BaseModel):
    period_id: str
    timesheet_count: int
    total: Decimal
    by_employee: dict[str, Decimal]


# ============================================================================
# Projection schemas
# ============================================================================


class RevenueRangeResponse(BaseModel):
    start: date
    end: date
    total: Decimal


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None
