"""Client and service agreement documents, plus projection results."""

from __future__ import annotations

import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from portal_payroll.models.payroll import DocumentModel, OptionalInstant

CLIENTS_COLLECTION = "clientMasterList"
AGREEMENTS_COLLECTION = "serviceAgreements"


class Client(DocumentModel):
    """Client master record (only the fields projections need)."""

    status: bool | None = None
    company_name: str | None = Field(default=None, alias="companyName")
    name: str | None = None

    @property
    def display_name(self) -> str:
        return self.company_name or self.name or (self.id or "")


class PaymentScheduleDetails(BaseModel):
    """When an agreement is billed."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    monthly_payment_day: int | None = Field(default=None, alias="monthlyPaymentDay")
    quarterly_month: int | None = Field(default=None, alias="quarterlyMonth")
    quarterly_day: int | None = Field(default=None, alias="quarterlyDay")


class ServiceAgreement(DocumentModel):
    """Recurring billing agreement with a client."""

    client_id: str | None = Field(default=None, alias="clientId")
    agreement_name: str | None = Field(default=None, alias="agreementName")
    payment_amount: Decimal | None = Field(default=None, alias="paymentAmount")
    payment_frequency: str | None = Field(default=None, alias="paymentFrequency")
    schedule: PaymentScheduleDetails = Field(
        default_factory=PaymentScheduleDetails, alias="paymentScheduleDetails"
    )
    contract_start: OptionalInstant = Field(default=None, alias="contractStartDate")
    contract_end: OptionalInstant = Field(default=None, alias="contractEndDate")
    is_active: bool | None = Field(default=None, alias="isActive")

    @property
    def display_name(self) -> str:
        return self.agreement_name or "Unnamed Agreement"

    def ineligibility_reason(self, active_client_ids: set[str], now: datetime.datetime) -> str | None:
        """Why this agreement is excluded from projections, or None if it is eligible."""
        if not self.client_id or self.client_id not in active_client_ids:
            return "client not active"
        if self.is_active is False:
            return "explicitly inactive"
        if not self.payment_amount or self.payment_amount <= 0:
            return "no payment amount"
        if self.contract_end is not None and self.contract_end < now:
            return "contract expired"
        if self.contract_start is not None and self.contract_start > now:
            return "contract not started yet"
        return None


# ============================================================================
# Projection results
# ============================================================================


class ProjectedPayment(BaseModel):
    """A single expected payment from an agreement."""

    date: datetime.date
    amount: Decimal
    agreement_id: str
    agreement_name: str
    client_id: str
    frequency: str


class UpcomingPayment(BaseModel):
    """A projected payment falling inside the upcoming window."""

    agreement_id: str
    agreement_name: str
    client_id: str
    payment_date: datetime.date
    amount: Decimal
    days_until: int


class AgreementSummary(BaseModel):
    """Per-agreement line of a financial projection."""

    agreement_id: str
    agreement_name: str
    client_id: str
    client_name: str
    payment_amount: Decimal
    payment_frequency: str
    next_payment_date: datetime.date | None = None
    contract_status: str


class FinancialProjection(BaseModel):
    """Aggregated revenue projection over a horizon."""

    total_expected_revenue: Decimal = Decimal("0")
    agreements: list[AgreementSummary] = Field(default_factory=list)
    projected_payments: list[ProjectedPayment] = Field(default_factory=list)
    monthly_breakdown: dict[str, Decimal] = Field(default_factory=dict)
    upcoming_payments: list[UpcomingPayment] = Field(default_factory=list)


class CashflowPoint(BaseModel):
    """Projected inflow/outflow for one day."""

    date: datetime.date
    inflow: Decimal
    outflow: Decimal = Decimal("0")
