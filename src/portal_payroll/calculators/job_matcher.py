"""Pairing attendance events with the job assignments they belong to."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Protocol, Sequence

from portal_payroll.models.payroll import AttendanceEvent, JobRecord


@dataclass(frozen=True)
class JobAssignment:
    """One employee assigned to one job on a service day."""

    job_id: str
    employee_id: str
    service_date: date
    location_id: str | None = None
    client_id: str | None = None


def expand_assignments(jobs: Iterable[JobRecord]) -> list[JobAssignment]:
    """Project job records into per-employee assignments, preserving order."""
    assignments: list[JobAssignment] = []
    for job in jobs:
        if job.id is None:
            continue
        for employee_id in job.assigned_employees:
            assignments.append(
                JobAssignment(
                    job_id=job.id,
                    employee_id=employee_id,
                    service_date=job.service_date.date(),
                    location_id=job.location_id,
                    client_id=job.client_id,
                )
            )
    return assignments


class AssignmentSelector(Protocol):
    """Strategy picking one assignment among equally eligible candidates."""

    def select(
        self,
        event: AttendanceEvent,
        candidates: Sequence[JobAssignment],
    ) -> JobAssignment | None:
        ...


class FirstArrivalSelector:
    """Pick the first candidate in arrival order.

    Time proximity between clock-in and the job is not considered.
    """

    def select(
        self,
        event: AttendanceEvent,
        candidates: Sequence[JobAssignment],
    ) -> JobAssignment | None:
        return candidates[0] if candidates else None


class JobMatcher:
    """Matches an attendance event to a job assignment.

    Candidates share the event's employee and service day. When the event
    carries a location, candidates at that location are preferred; if none
    exist the selector chooses among all of the employee's candidates.
    """

    def __init__(self, selector: AssignmentSelector | None = None):
        self.selector = selector or FirstArrivalSelector()

    def match(
        self,
        event: AttendanceEvent,
        assignments: Sequence[JobAssignment],
    ) -> JobAssignment | None:
        work_day = event.clock_in.date()
        candidates = [
            a
            for a in assignments
            if a.employee_id == event.employee_id and a.service_date == work_day
        ]
        if not candidates:
            return None

        if event.location_id:
            at_location = [a for a in candidates if a.location_id == event.location_id]
            if at_location:
                return self.selector.select(event, at_location)

        return self.selector.select(event, candidates)
