"""Timesheet reconciliation from attendance events.

Turns a window of clock-in/clock-out events into event-sourced timesheets:

1. Match each event to a job assignment
2. Skip (employee, job, work-day) triples that already have a timesheet
3. Resolve the pay rate at clock-in, scoped by job location then client
4. Compute worked hours and write every new timesheet in one batch
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from pydantic import ValidationError

from portal_payroll.calculators.job_matcher import JobAssignment, JobMatcher, expand_assignments
from portal_payroll.calculators.periods import SemiMonthlyPeriod
from portal_payroll.calculators.rate_resolver import RateResolver
from portal_payroll.models.payroll import (
    ATTENDANCE_COLLECTION,
    JOBS_COLLECTION,
    TIMESHEETS_COLLECTION,
    AttendanceEvent,
    JobRecord,
    RateSnapshot,
    RateType,
    Timesheet,
    TimesheetSource,
)
from portal_payroll.services.run_lock import ReconciliationLock
from portal_payroll.store.base import DocumentStore, FieldFilter, OrderBy
from portal_payroll.store.codec import SERVER_TIMESTAMP

logger = logging.getLogger(__name__)

HOURS_QUANTUM = Decimal("0.01")


class InvalidWindowError(ValueError):
    """Raised when a reconciliation window is empty or inverted."""

    def __init__(self, window_start: datetime, window_end: datetime):
        self.window_start = window_start
        self.window_end = window_end
        super().__init__(
            f"Invalid reconciliation window [{window_start.isoformat()}, "
            f"{window_end.isoformat()}): start must be before end"
        )


class EventOutcome(str, Enum):
    """Terminal state of one attendance event in a run."""

    CREATED = "created"
    SKIPPED_DUPLICATE = "skipped_duplicate"
    SKIPPED_NO_MATCH = "skipped_no_match"
    SKIPPED_NO_RATE = "skipped_no_rate"
    SKIPPED_INVALID = "skipped_invalid"


@dataclass
class ReconciliationResult:
    """Result of a reconciliation run."""

    window_start: datetime
    window_end: datetime
    outcomes: dict[str, EventOutcome] = field(default_factory=dict)
    timesheet_ids: list[str] = field(default_factory=list)

    def count(self, outcome: EventOutcome) -> int:
        return sum(1 for o in self.outcomes.values() if o == outcome)

    @property
    def created(self) -> int:
        return self.count(EventOutcome.CREATED)

    @property
    def skipped(self) -> int:
        return self.total - self.created

    @property
    def total(self) -> int:
        return len(self.outcomes)

    def as_dict(self) -> dict[str, int]:
        return {"created": self.created, "skipped": self.skipped, "total": self.total}


def compute_hours(clock_in: datetime, clock_out: datetime | None) -> Decimal:
    """Hours between clock-in and clock-out, rounded to 2 dp, never negative.

    An open shift (no clock-out) yields zero hours.
    """
    if clock_out is None:
        return Decimal("0.00")
    seconds = Decimal(str((clock_out - clock_in).total_seconds()))
    hours = (seconds / Decimal(3600)).quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP)
    return max(Decimal("0.00"), hours)


def build_timesheet(
    event: AttendanceEvent,
    assignment: JobAssignment,
    rate: RateSnapshot,
) -> Timesheet:
    """Event-sourced timesheet for a matched, rated attendance event."""
    return Timesheet(
        employee_id=event.employee_id,
        job_id=assignment.job_id,
        start=event.clock_in,
        end=event.clock_out,
        hours=compute_hours(event.clock_in, event.clock_out),
        units=1 if rate.type == RateType.PER_VISIT else None,
        rate_snapshot=rate,
        employee_approved=True,
        admin_approved=False,
        source=TimesheetSource.CLOCK_EVENT,
    )


@dataclass
class _Claim:
    event: AttendanceEvent
    assignment: JobAssignment


class TimesheetReconciler:
    """Creates timesheets from attendance events, idempotently.

    At most one event-sourced timesheet exists per (employee, job,
    work-day). Runs must not overlap; pass a ``ReconciliationLock`` to
    enforce that. Nothing is written until the final batch commit.
    """

    def __init__(
        self,
        store: DocumentStore,
        resolver: RateResolver | None = None,
        matcher: JobMatcher | None = None,
        lock: ReconciliationLock | None = None,
        concurrency: int = 8,
    ):
        self.store = store
        self.resolver = resolver or RateResolver(store)
        self.matcher = matcher or JobMatcher()
        self.lock = lock
        self.concurrency = max(1, concurrency)

    async def reconcile(self, window_start: datetime, window_end: datetime) -> ReconciliationResult:
        """Reconcile attendance events with clock-in in [window_start, window_end).

        Raises:
            InvalidWindowError: If window_start >= window_end
            ReconciliationInProgressError: If another run holds the lock
            StoreError: If the store fails; no timesheets are written
        """
        if window_start >= window_end:
            raise InvalidWindowError(window_start, window_end)

        if self.lock is None:
            return await self._run(window_start, window_end)

        async with self.lock.hold(window_start, window_end):
            return await self._run(window_start, window_end)

    async def reconcile_period(self, period: SemiMonthlyPeriod) -> ReconciliationResult:
        """Reconcile every work day of a semi-monthly period."""
        start = datetime.combine(period.work_period_start, time.min)
        end = datetime.combine(period.work_period_end + timedelta(days=1), time.min)
        return await self.reconcile(start, end)

    async def _run(self, window_start: datetime, window_end: datetime) -> ReconciliationResult:
        result = ReconciliationResult(window_start=window_start, window_end=window_end)

        events = await self._load_events(window_start, window_end, result)
        assignments = await self._load_assignments(window_start, window_end)
        logger.info(
            "Reconciling %d clock events against %d job assignments",
            len(events),
            len(assignments),
        )

        # Matching and in-run duplicate claims are sequential so that
        # arrival order decides which event owns a (employee, job, day).
        claims: dict[str, _Claim] = {}
        claimed_keys: set[tuple[str, str, date]] = set()
        for event_id, event in events:
            assignment = self.matcher.match(event, assignments)
            if assignment is None:
                logger.warning("No matching job found for clock event %s", event_id)
                result.outcomes[event_id] = EventOutcome.SKIPPED_NO_MATCH
                continue

            key = (event.employee_id, assignment.job_id, event.clock_in.date())
            if key in claimed_keys:
                result.outcomes[event_id] = EventOutcome.SKIPPED_DUPLICATE
                continue
            claimed_keys.add(key)
            claims[event_id] = _Claim(event, assignment)

        semaphore = asyncio.Semaphore(self.concurrency)

        async def evaluate(claim: _Claim) -> tuple[EventOutcome, Timesheet | None]:
            async with semaphore:
                return await self._evaluate(claim)

        tasks = [asyncio.create_task(evaluate(c)) for c in claims.values()]
        try:
            evaluated = await asyncio.gather(*tasks)
        except BaseException:
            # one failed lookup fails the run; stop the rest before re-raising
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        batch = self.store.batch()
        for event_id, (outcome, timesheet) in zip(claims.keys(), evaluated):
            result.outcomes[event_id] = outcome
            if timesheet is not None:
                data: dict[str, Any] = timesheet.to_document()
                data["createdAt"] = SERVER_TIMESTAMP
                data["updatedAt"] = SERVER_TIMESTAMP
                result.timesheet_ids.append(batch.set(TIMESHEETS_COLLECTION, None, data))

        if len(batch) > 0:
            await batch.commit()

        logger.info(
            "Reconciliation %s..%s: created=%d duplicate=%d no_match=%d no_rate=%d invalid=%d",
            window_start.isoformat(),
            window_end.isoformat(),
            result.created,
            result.count(EventOutcome.SKIPPED_DUPLICATE),
            result.count(EventOutcome.SKIPPED_NO_MATCH),
            result.count(EventOutcome.SKIPPED_NO_RATE),
            result.count(EventOutcome.SKIPPED_INVALID),
        )
        return result

    async def _evaluate(self, claim: _Claim) -> tuple[EventOutcome, Timesheet | None]:
        event, assignment = claim.event, claim.assignment

        if await self.timesheet_exists(event.employee_id, assignment.job_id, event.clock_in.date()):
            logger.debug(
                "Timesheet already exists for employee %s job %s on %s",
                event.employee_id,
                assignment.job_id,
                event.clock_in.date(),
            )
            return EventOutcome.SKIPPED_DUPLICATE, None

        rate = await self.resolver.resolve(
            event.employee_id,
            event.clock_in,
            location_id=assignment.location_id,
            client_id=assignment.client_id,
        )
        if rate is None:
            return EventOutcome.SKIPPED_NO_RATE, None

        return EventOutcome.CREATED, build_timesheet(event, assignment, rate)

    async def timesheet_exists(self, employee_id: str, job_id: str, work_day: date) -> bool:
        """Whether an event-sourced timesheet exists for the idempotency key."""
        day_start = datetime.combine(work_day, time.min)
        day_end = datetime.combine(work_day, time.max)
        docs = await self.store.query(
            TIMESHEETS_COLLECTION,
            filters=[
                FieldFilter("employeeId", "==", employee_id),
                FieldFilter("start", ">=", day_start),
                FieldFilter("start", "<=", day_end),
            ],
        )
        return any(
            str(doc.get("jobId") or "") == job_id
            and doc.get("source") == TimesheetSource.CLOCK_EVENT.value
            for doc in docs
        )

    async def _load_events(
        self,
        window_start: datetime,
        window_end: datetime,
        result: ReconciliationResult,
    ) -> list[tuple[str, AttendanceEvent]]:
        docs = await self.store.query(
            ATTENDANCE_COLLECTION,
            filters=[
                FieldFilter("clockInTime", ">=", window_start),
                FieldFilter("clockInTime", "<", window_end),
            ],
            order_by=[OrderBy("clockInTime")],
        )

        events: list[tuple[str, AttendanceEvent]] = []
        for doc in docs:
            try:
                events.append((doc.id, AttendanceEvent.from_document(doc.id, doc.data)))
            except ValidationError as e:
                logger.warning("Skipping malformed clock event %s: %s", doc.id, e)
                result.outcomes[doc.id] = EventOutcome.SKIPPED_INVALID
        return events

    async def _load_assignments(
        self,
        window_start: datetime,
        window_end: datetime,
    ) -> list[JobAssignment]:
        docs = await self.store.query(
            JOBS_COLLECTION,
            filters=[
                FieldFilter("serviceDate", ">=", datetime.combine(window_start.date(), time.min)),
                FieldFilter("serviceDate", "<", window_end),
            ],
            order_by=[OrderBy("serviceDate")],
        )

        jobs: list[JobRecord] = []
        for doc in docs:
            try:
                jobs.append(JobRecord.from_document(doc.id, doc.data))
            except ValidationError as e:
                logger.warning("Skipping malformed job %s: %s", doc.id, e)
        return expand_assignments(jobs)
