"""Admin approval of event-sourced timesheets on job completion."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from portal_payroll.models.payroll import TIMESHEETS_COLLECTION, TimesheetSource
from portal_payroll.store.base import DocumentStore, FieldFilter
from portal_payroll.store.codec import SERVER_TIMESTAMP

logger = logging.getLogger(__name__)


@dataclass
class JobApprovalResult:
    """Timesheets stamped as admin-approved for a completed job."""

    job_id: str
    updated: int = 0
    timesheet_ids: list[str] = field(default_factory=list)


class TimesheetApprovalService:
    """Flips admin approval when a job is completed, and back on revert.

    Forward approval is a best-effort bulk stamp written in one batch;
    re-applying it is harmless. The revert re-reads each timesheet inside
    a transaction and only touches event-sourced ones, so it is safe
    against concurrent admin edits and never resets manual entries.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    async def on_job_completed(self, job_id: str) -> JobApprovalResult:
        """Admin-approve every pending event-sourced timesheet of a job."""
        docs = await self.store.query(
            TIMESHEETS_COLLECTION,
            filters=[
                FieldFilter("jobId", "==", job_id),
                FieldFilter("source", "==", TimesheetSource.CLOCK_EVENT.value),
                FieldFilter("adminApproved", "==", False),
            ],
        )
        result = JobApprovalResult(job_id=job_id)
        if not docs:
            return result

        batch = self.store.batch()
        for doc in docs:
            batch.update(
                TIMESHEETS_COLLECTION,
                doc.id,
                {"adminApproved": True, "updatedAt": SERVER_TIMESTAMP},
            )
            result.timesheet_ids.append(doc.id)
        await batch.commit()

        result.updated = len(result.timesheet_ids)
        logger.info("Approved %d timesheets for completed job %s", result.updated, job_id)
        return result

    async def on_job_completion_reverted(self, timesheet_ids: Sequence[str]) -> int:
        """Undo job-completion approval for the given timesheets.

        Returns the number of timesheets reset to not admin-approved.
        """
        if not timesheet_ids:
            return 0

        reverted = 0
        async with self.store.transaction() as txn:
            for timesheet_id in timesheet_ids:
                snapshot = await txn.get(TIMESHEETS_COLLECTION, timesheet_id)
                if snapshot is None:
                    continue
                if snapshot.get("source") != TimesheetSource.CLOCK_EVENT.value:
                    continue
                txn.update(
                    TIMESHEETS_COLLECTION,
                    timesheet_id,
                    {"adminApproved": False, "updatedAt": SERVER_TIMESTAMP},
                )
                reverted += 1

        logger.info(
            "Reverted approval on %d of %d timesheets", reverted, len(timesheet_ids)
        )
        return reverted
