"""Payroll readiness checks and earnings for a semi-monthly period."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from decimal import Decimal

from pydantic import ValidationError

from portal_payroll.calculators.earnings import ZERO, earnings_by_employee
from portal_payroll.calculators.periods import SemiMonthlyPeriod
from portal_payroll.calculators.rate_resolver import RateResolver
from portal_payroll.models.payroll import (
    JOBS_COLLECTION,
    TIMESHEETS_COLLECTION,
    JobRecord,
    Timesheet,
)
from portal_payroll.store.base import DocumentStore, FieldFilter

logger = logging.getLogger(__name__)

# Job statuses whose assigned employees are expected on the payroll
PAYROLL_RELEVANT_STATUSES = frozenset({"completed", "pending approval", "in progress", "started"})


@dataclass
class PeriodEarnings:
    """Timesheet earnings for one period, per employee."""

    period_id: str
    by_employee: dict[str, Decimal] = field(default_factory=dict)
    timesheet_count: int = 0

    @property
    def total(self) -> Decimal:
        return sum(self.by_employee.values(), ZERO)


def _period_bounds(period: SemiMonthlyPeriod) -> tuple[datetime, datetime]:
    start = datetime.combine(period.work_period_start, time.min)
    end = datetime.combine(period.work_period_end + timedelta(days=1), time.min)
    return start, end


class PayrollReadinessService:
    """Answers "can this period be paid?" before payroll is run."""

    def __init__(self, store: DocumentStore, resolver: RateResolver | None = None):
        self.store = store
        self.resolver = resolver or RateResolver(store)

    async def missing_rate_employee_ids(self, period: SemiMonthlyPeriod) -> list[str]:
        """Employees assigned to payroll-relevant jobs in the period with no rate.

        Rates are resolved at each job's service date with its location and
        client scope; identical lookups within one call are resolved once.
        """
        jobs = await self._load_jobs(period)
        relevant = [job for job in jobs if job.effective_status in PAYROLL_RELEVANT_STATUSES]

        resolved: dict[tuple[str, datetime, str, str], bool] = {}
        missing: set[str] = set()
        for job in relevant:
            for employee_id in job.assigned_employees:
                key = (employee_id, job.service_date, job.location_id or "", job.client_id or "")
                if key not in resolved:
                    rate = await self.resolver.resolve(
                        employee_id,
                        job.service_date,
                        location_id=job.location_id,
                        client_id=job.client_id,
                    )
                    resolved[key] = rate is not None
                if not resolved[key]:
                    missing.add(employee_id)

        if missing:
            logger.info(
                "Period %s has %d employees without a rate", period.period_id, len(missing)
            )
        return sorted(missing)

    async def period_earnings(
        self, period: SemiMonthlyPeriod, approved_only: bool = False
    ) -> PeriodEarnings:
        """Sum timesheet earnings for work started inside the period."""
        start, end = _period_bounds(period)
        filters = [
            FieldFilter("start", ">=", start),
            FieldFilter("start", "<", end),
        ]
        if approved_only:
            filters.append(FieldFilter("adminApproved", "==", True))
        docs = await self.store.query(TIMESHEETS_COLLECTION, filters=filters)

        timesheets: list[Timesheet] = []
        for doc in docs:
            try:
                timesheets.append(Timesheet.from_document(doc.id, doc.data))
            except ValidationError as e:
                logger.warning("Skipping malformed timesheet %s: %s", doc.id, e)

        return PeriodEarnings(
            period_id=period.period_id,
            by_employee=earnings_by_employee(timesheets),
            timesheet_count=len(timesheets),
        )

    async def _load_jobs(self, period: SemiMonthlyPeriod) -> list[JobRecord]:
        start, end = _period_bounds(period)
        docs = await self.store.query(
            JOBS_COLLECTION,
            filters=[
                FieldFilter("serviceDate", ">=", start),
                FieldFilter("serviceDate", "<", end),
            ],
        )
        jobs: list[JobRecord] = []
        for doc in docs:
            try:
                jobs.append(JobRecord.from_document(doc.id, doc.data))
            except ValidationError as e:
                logger.warning("Skipping malformed job %s: %s", doc.id, e)
        return jobs
