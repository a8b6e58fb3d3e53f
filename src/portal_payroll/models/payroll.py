"""Payroll document models: attendance events, jobs, rates and timesheets.

Models validate raw store documents (keyed by their persisted field names)
and dump back to the same field names. Every temporal field goes through
``Instant`` so the algorithms only ever see naive ``datetime`` values.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from portal_payroll.store.codec import to_instant

Instant = Annotated[datetime, BeforeValidator(to_instant)]
OptionalInstant = Annotated[datetime | None, BeforeValidator(to_instant)]

# Collection names (persisted contract)
ATTENDANCE_COLLECTION = "employeeTimeTracking"
JOBS_COLLECTION = "serviceHistory"
RATES_COLLECTION = "employeeRates"
TIMESHEETS_COLLECTION = "timesheets"
PAYROLL_PERIODS_COLLECTION = "payrollPeriods"


class RateType(str, Enum):
    """Pay rate types."""

    PER_VISIT = "per_visit"
    HOURLY = "hourly"
    MONTHLY = "monthly"


class TimesheetSource(str, Enum):
    """Origin of a timesheet."""

    CLOCK_EVENT = "clock_event"
    MANUAL = "manual"


class DocumentModel(BaseModel):
    """Base for models mapped onto store documents."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str | None = None

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]):
        return cls.model_validate({**data, "id": doc_id})

    def to_document(self) -> dict[str, Any]:
        """Persisted field mapping, without the document id."""
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"id"})


class AttendanceEvent(DocumentModel):
    """A clock-in/clock-out record from the time clock."""

    employee_id: str = Field(alias="employeeProfileId")
    location_id: str | None = Field(default=None, alias="locationId")
    clock_in: Instant = Field(alias="clockInTime")
    clock_out: OptionalInstant = Field(default=None, alias="clockOutTime")
    latitude: float | None = None
    longitude: float | None = None


class JobRecord(DocumentModel):
    """A scheduled job (service history entry)."""

    service_date: Instant = Field(alias="serviceDate")
    assigned_employees: list[str] = Field(default_factory=list, alias="assignedEmployees")
    location_id: str | None = Field(default=None, alias="locationId")
    client_id: str | None = Field(default=None, alias="clientProfileId")
    status: str | None = None
    status_legacy: str | None = Field(default=None, alias="statusLegacy")

    @property
    def effective_status(self) -> str:
        """Current status, falling back to the legacy field; lower-cased."""
        return (self.status or self.status_legacy or "").lower()


class RateSnapshot(BaseModel):
    """Point-in-time copy of a resolved pay rate."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    type: RateType
    amount: Decimal
    monthly_pay_day: int | None = Field(default=None, alias="monthlyPayDay")

    @model_validator(mode="before")
    @classmethod
    def _fill_legacy_hourly(cls, data: Any) -> Any:
        # Snapshots written before rate types existed only carry hourlyRate.
        if isinstance(data, dict) and not data.get("type") and data.get("hourlyRate"):
            return {**data, "type": RateType.HOURLY, "amount": data["hourlyRate"]}
        return data


class RateRecord(DocumentModel):
    """An effective-dated pay rate for one employee."""

    employee_id: str = Field(alias="employeeId")
    rate_type: RateType = Field(alias="rateType")
    amount: Decimal = Field(gt=0)
    effective_date: Instant = Field(alias="effectiveDate")
    location_id: str | None = Field(default=None, alias="locationId")
    client_id: str | None = Field(default=None, alias="clientProfileId")
    monthly_pay_day: int | None = Field(default=None, alias="monthlyPayDay")

    @model_validator(mode="before")
    @classmethod
    def _fill_legacy_fields(cls, data: Any) -> Any:
        # Older rate documents carry hourlyRate/perVisitRate/rate instead of
        # rateType + amount.
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get("rateType") and not data.get("rate_type"):
            data["rateType"] = RateType.HOURLY if data.get("hourlyRate") else RateType.PER_VISIT
        if not data.get("amount"):
            data["amount"] = (
                data.get("hourlyRate") or data.get("perVisitRate") or data.get("rate") or 0
            )
        return data

    def to_snapshot(self) -> RateSnapshot:
        return RateSnapshot(
            type=self.rate_type,
            amount=self.amount,
            monthly_pay_day=self.monthly_pay_day,
        )


class Timesheet(DocumentModel):
    """Worked time for one employee on one job."""

    employee_id: str = Field(alias="employeeId")
    job_id: str = Field(alias="jobId")
    start: Instant
    end: OptionalInstant = None
    hours: Decimal = Decimal("0")
    units: int | None = None
    rate_snapshot: RateSnapshot = Field(alias="rateSnapshot")
    employee_approved: bool = Field(default=False, alias="employeeApproved")
    admin_approved: bool = Field(default=False, alias="adminApproved")
    source: TimesheetSource = TimesheetSource.MANUAL
    created_at: OptionalInstant = Field(default=None, alias="createdAt")
    updated_at: OptionalInstant = Field(default=None, alias="updatedAt")
