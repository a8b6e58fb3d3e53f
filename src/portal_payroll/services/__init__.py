"""Reconciliation, approval and projection services."""

from portal_payroll.services.payroll_periods import PayrollPeriodService
from portal_payroll.services.payroll_readiness import (
    PAYROLL_RELEVANT_STATUSES,
    PayrollReadinessService,
    PeriodEarnings,
)
from portal_payroll.services.projections import AgreementProjectionEngine
from portal_payroll.services.run_lock import ReconciliationInProgressError, ReconciliationLock
from portal_payroll.services.timesheet_approval import JobApprovalResult, TimesheetApprovalService
from portal_payroll.services.timesheet_reconciler import (
    EventOutcome,
    InvalidWindowError,
    ReconciliationResult,
    TimesheetReconciler,
)

__all__ = [
    "AgreementProjectionEngine",
    "EventOutcome",
    "InvalidWindowError",
    "JobApprovalResult",
    "PAYROLL_RELEVANT_STATUSES",
    "PayrollPeriodService",
    "PayrollReadinessService",
    "PeriodEarnings",
    "ReconciliationInProgressError",
    "ReconciliationLock",
    "ReconciliationResult",
    "TimesheetApprovalService",
    "TimesheetReconciler",
]
