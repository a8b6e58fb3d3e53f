"""Tests for job-completion approval and its revert."""

from datetime import datetime

import pytest
import pytest_asyncio

from portal_payroll.models.payroll import TIMESHEETS_COLLECTION
from portal_payroll.services.timesheet_approval import TimesheetApprovalService

pytestmark = pytest.mark.asyncio


def timesheet(job_id: str, source: str, admin_approved: bool) -> dict:
    return {
        "employeeId": "emp-1",
        "jobId": job_id,
        "start": datetime(2026, 1, 5, 8, 0),
        "end": datetime(2026, 1, 5, 16, 30),
        "hours": 8.5,
        "rateSnapshot": {"type": "hourly", "amount": 25},
        "employeeApproved": True,
        "adminApproved": admin_approved,
        "source": source,
    }


@pytest_asyncio.fixture
async def timesheets(seed):
    await seed(
        TIMESHEETS_COLLECTION,
        {
            "ts-pending": timesheet("job-1", "clock_event", False),
            "ts-approved": timesheet("job-1", "clock_event", True),
            "ts-manual": timesheet("job-1", "manual", False),
            "ts-other-job": timesheet("job-2", "clock_event", False),
        },
    )


async def admin_approved(store, timesheet_id: str) -> bool:
    doc = await store.get(TIMESHEETS_COLLECTION, timesheet_id)
    return doc.get("adminApproved")


class TestJobCompleted:
    """Forward approval on job completion."""

    async def test_approves_pending_event_sourced_timesheets(self, store, timesheets):
        result = await TimesheetApprovalService(store).on_job_completed("job-1")

        assert result.job_id == "job-1"
        assert result.updated == 1
        assert result.timesheet_ids == ["ts-pending"]
        assert await admin_approved(store, "ts-pending") is True

    async def test_manual_and_other_jobs_untouched(self, store, timesheets):
        await TimesheetApprovalService(store).on_job_completed("job-1")

        assert await admin_approved(store, "ts-manual") is False
        assert await admin_approved(store, "ts-other-job") is False

    async def test_stamps_updated_at(self, store, timesheets):
        await TimesheetApprovalService(store).on_job_completed("job-1")

        doc = await store.get(TIMESHEETS_COLLECTION, "ts-pending")
        assert doc.get("updatedAt") == "2026-01-20T09:00:00.000000"

    async def test_repeat_is_harmless(self, store, timesheets):
        service = TimesheetApprovalService(store)

        await service.on_job_completed("job-1")
        again = await service.on_job_completed("job-1")

        assert again.updated == 0
        assert await admin_approved(store, "ts-pending") is True

    async def test_unknown_job(self, store, timesheets):
        result = await TimesheetApprovalService(store).on_job_completed("job-404")

        assert result.updated == 0
        assert result.timesheet_ids == []


class TestJobCompletionReverted:
    """Transactional rollback of approval."""

    async def test_reverts_event_sourced_only(self, store, timesheets, seed):
        await seed(
            TIMESHEETS_COLLECTION,
            {"ts-manual-approved": timesheet("job-1", "manual", True)},
        )
        service = TimesheetApprovalService(store)

        reverted = await service.on_job_completion_reverted(
            ["ts-approved", "ts-manual-approved", "ts-missing"]
        )

        assert reverted == 1
        assert await admin_approved(store, "ts-approved") is False
        assert await admin_approved(store, "ts-manual-approved") is True

    async def test_manual_timesheet_is_noop(self, store, timesheets, seed):
        await seed(
            TIMESHEETS_COLLECTION,
            {"ts-manual-approved": timesheet("job-1", "manual", True)},
        )

        reverted = await TimesheetApprovalService(store).on_job_completion_reverted(
            ["ts-manual-approved"]
        )

        assert reverted == 0
        doc = await store.get(TIMESHEETS_COLLECTION, "ts-manual-approved")
        assert doc.get("adminApproved") is True
        assert "updatedAt" not in doc.data

    async def test_empty_input(self, store):
        assert await TimesheetApprovalService(store).on_job_completion_reverted([]) == 0

    async def test_complete_then_revert(self, store, timesheets):
        service = TimesheetApprovalService(store)

        approved = await service.on_job_completed("job-1")
        reverted = await service.on_job_completion_reverted(approved.timesheet_ids)

        assert reverted == 1
        assert await admin_approved(store, "ts-pending") is False
