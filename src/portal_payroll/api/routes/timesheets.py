"""Timesheet reconciliation and approval endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, status

from portal_payroll.api.dependencies import ApprovalService, Reconciler
from portal_payroll.api.schemas import (
    ErrorResponse,
    JobCompletionResponse,
    ReconcileRequest,
    ReconcileResponse,
    RevertApprovalRequest,
    RevertApprovalResponse,
)
from portal_payroll.services.timesheet_reconciler import EventOutcome

router = APIRouter(tags=["timesheets"])


@router.post(
    "/timesheets/reconcile",
    response_model=ReconcileResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def reconcile_timesheets(
    reconciler: Reconciler,
    payload: ReconcileRequest,
) -> ReconcileResponse:
    """Create timesheets from clock events in the window. Idempotent."""
    result = await reconciler.reconcile(payload.window_start, payload.window_end)
    return ReconcileResponse(
        **result.as_dict(),
        skipped_duplicate=result.count(EventOutcome.SKIPPED_DUPLICATE),
        skipped_no_match=result.count(EventOutcome.SKIPPED_NO_MATCH),
        skipped_no_rate=result.count(EventOutcome.SKIPPED_NO_RATE),
        skipped_invalid=result.count(EventOutcome.SKIPPED_INVALID),
        timesheet_ids=result.timesheet_ids,
    )


@router.post(
    "/timesheets/revert-approval",
    response_model=RevertApprovalResponse,
    responses={503: {"model": ErrorResponse}},
)
async def revert_timesheet_approval(
    approvals: ApprovalService,
    payload: RevertApprovalRequest,
) -> RevertApprovalResponse:
    """Undo job-completion approval; manual timesheets are left untouched."""
    reverted = await approvals.on_job_completion_reverted(payload.timesheet_ids)
    return RevertApprovalResponse(reverted=reverted)


@router.post(
    "/jobs/{job_id}/completion",
    response_model=JobCompletionResponse,
    responses={503: {"model": ErrorResponse}},
)
async def complete_job(
    approvals: ApprovalService,
    job_id: Annotated[str, Path()],
) -> JobCompletionResponse:
    """Admin-approve the clock-event timesheets of a completed job."""
    result = await approvals.on_job_completed(job_id)
    return JobCompletionResponse(
        job_id=result.job_id,
        updated=result.updated,
        timesheet_ids=result.timesheet_ids,
    )
