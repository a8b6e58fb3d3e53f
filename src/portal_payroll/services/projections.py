"""Revenue projections from recurring service agreements."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from datetime import date, datetime
from decimal import Decimal

from pydantic import ValidationError

from portal_payroll.calculators.payment_schedule import (
    ScheduledPayment,
    next_payment,
    payment_series,
)
from portal_payroll.models.agreements import (
    AGREEMENTS_COLLECTION,
    CLIENTS_COLLECTION,
    AgreementSummary,
    CashflowPoint,
    Client,
    FinancialProjection,
    ProjectedPayment,
    ServiceAgreement,
    UpcomingPayment,
)
from portal_payroll.store.base import DocumentStore, FieldFilter

logger = logging.getLogger(__name__)

DEFAULT_HORIZON_DAYS = 90
DATE_RANGE_HORIZON_DAYS = 365


class AgreementProjectionEngine:
    """Projects agreement payments and folds them into revenue figures.

    With ``full_series`` every occurrence through the horizon is projected;
    otherwise only the single next occurrence per agreement is.
    """

    def __init__(
        self,
        store: DocumentStore,
        clock: Callable[[], datetime] = datetime.now,
        full_series: bool = True,
        upcoming_days: int = 30,
    ):
        self.store = store
        self.clock = clock
        self.full_series = full_series
        self.upcoming_days = upcoming_days

    async def load_agreements(self) -> tuple[list[ServiceAgreement], dict[str, str]]:
        """Eligible agreements and the display names of active clients."""
        now = self.clock()

        client_docs = await self.store.query(
            CLIENTS_COLLECTION,
            filters=[FieldFilter("status", "==", True)],
        )
        client_names: dict[str, str] = {}
        for doc in client_docs:
            try:
                client_names[doc.id] = Client.from_document(doc.id, doc.data).display_name
            except ValidationError as e:
                logger.warning("Skipping malformed client %s: %s", doc.id, e)
        logger.debug("Found %d active clients", len(client_names))

        agreements: list[ServiceAgreement] = []
        active_ids = set(client_names)
        for doc in await self.store.query(AGREEMENTS_COLLECTION):
            try:
                agreement = ServiceAgreement.from_document(doc.id, doc.data)
            except ValidationError as e:
                logger.warning("Skipping malformed agreement %s: %s", doc.id, e)
                continue

            reason = agreement.ineligibility_reason(active_ids, now)
            if reason is not None:
                logger.debug("Skipping agreement %s: %s", doc.id, reason)
                continue
            agreements.append(agreement)

        logger.info("Projecting %d active agreements", len(agreements))
        return agreements, client_names

    def payments_for(
        self,
        agreement: ServiceAgreement,
        today: date,
        horizon_days: int,
    ) -> list[ScheduledPayment]:
        """Payments of one agreement within the horizon."""
        if agreement.contract_start is None or not agreement.payment_amount:
            return []

        contract_end = agreement.contract_end.date() if agreement.contract_end else None
        args = (
            agreement.payment_frequency,
            agreement.schedule,
            agreement.payment_amount,
            today,
            horizon_days,
            contract_end,
        )
        if self.full_series:
            return payment_series(*args)

        payment = next_payment(*args)
        return [payment] if payment is not None else []

    async def project_revenue(self, horizon_days: int = DEFAULT_HORIZON_DAYS) -> FinancialProjection:
        """Build the financial projection over ``horizon_days``."""
        agreements, client_names = await self.load_agreements()
        today = self.clock().date()

        projection = FinancialProjection()
        monthly: dict[str, Decimal] = defaultdict(Decimal)

        for agreement in agreements:
            agreement_id = agreement.id or ""
            client_id = agreement.client_id or ""
            payments = self.payments_for(agreement, today, horizon_days)

            projection.agreements.append(
                AgreementSummary(
                    agreement_id=agreement_id,
                    agreement_name=agreement.display_name,
                    client_id=client_id,
                    client_name=client_names.get(client_id, "Unknown Client"),
                    payment_amount=agreement.payment_amount or Decimal("0"),
                    payment_frequency=agreement.payment_frequency or "Unknown",
                    next_payment_date=payments[0].date if payments else None,
                    contract_status="Active",
                )
            )

            for payment in payments:
                projection.projected_payments.append(
                    ProjectedPayment(
                        date=payment.date,
                        amount=payment.amount,
                        agreement_id=agreement_id,
                        agreement_name=agreement.display_name,
                        client_id=client_id,
                        frequency=payment.frequency,
                    )
                )
                projection.total_expected_revenue += payment.amount
                monthly[payment.date.strftime("%Y-%m")] += payment.amount

                days_until = (payment.date - today).days
                if 0 <= days_until <= self.upcoming_days:
                    projection.upcoming_payments.append(
                        UpcomingPayment(
                            agreement_id=agreement_id,
                            agreement_name=agreement.display_name,
                            client_id=client_id,
                            payment_date=payment.date,
                            amount=payment.amount,
                            days_until=days_until,
                        )
                    )

        projection.projected_payments.sort(key=lambda p: p.date)
        projection.upcoming_payments.sort(key=lambda p: p.payment_date)
        projection.monthly_breakdown = dict(sorted(monthly.items()))
        return projection

    async def revenue_by_date_range(self, start: date, end: date) -> Decimal:
        """Projected revenue with payment dates in [start, end]."""
        projection = await self.project_revenue(DATE_RANGE_HORIZON_DAYS)
        return sum(
            (p.amount for p in projection.projected_payments if start <= p.date <= end),
            Decimal("0"),
        )

    async def projected_cashflow(self, days: int = DEFAULT_HORIZON_DAYS) -> list[CashflowPoint]:
        """Daily inflow buckets, ascending by date. Outflows are not tracked."""
        projection = await self.project_revenue(days)
        inflows: dict[date, Decimal] = defaultdict(Decimal)
        for payment in projection.projected_payments:
            inflows[payment.date] += payment.amount
        return [CashflowPoint(date=day, inflow=amount) for day, amount in sorted(inflows.items())]
