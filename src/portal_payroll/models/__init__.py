"""ORM table and document models."""

from portal_payroll.models.base import Base, TimestampMixin
from portal_payroll.models.documents import StoredDocument
from portal_payroll.models.payroll import (
    AttendanceEvent,
    JobRecord,
    RateRecord,
    RateSnapshot,
    RateType,
    Timesheet,
    TimesheetSource,
)
from portal_payroll.models.agreements import (
    AgreementSummary,
    CashflowPoint,
    Client,
    FinancialProjection,
    PaymentScheduleDetails,
    ProjectedPayment,
    ServiceAgreement,
    UpcomingPayment,
)

__all__ = [
    "AgreementSummary",
    "AttendanceEvent",
    "Base",
    "CashflowPoint",
    "Client",
    "FinancialProjection",
    "JobRecord",
    "PaymentScheduleDetails",
    "ProjectedPayment",
    "RateRecord",
    "RateSnapshot",
    "RateType",
    "ServiceAgreement",
    "StoredDocument",
    "Timesheet",
    "TimesheetSource",
    "TimestampMixin",
    "UpcomingPayment",
]
