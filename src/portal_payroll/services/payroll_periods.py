"""Persisted payroll period documents."""

from __future__ import annotations

import logging
from typing import Any

from portal_payroll.calculators.periods import SemiMonthlyPeriod, period_to_document
from portal_payroll.models.payroll import PAYROLL_PERIODS_COLLECTION
from portal_payroll.store.base import Document, DocumentStore, OrderBy
from portal_payroll.store.codec import SERVER_TIMESTAMP

logger = logging.getLogger(__name__)


class PayrollPeriodService:
    """Creates and reads ``payrollPeriods`` documents keyed by period id."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def ensure_period(self, period: SemiMonthlyPeriod) -> bool:
        """Create the period document if absent.

        Returns True when this call created it. Concurrent callers race
        safely: the existence check and the write share a transaction.
        """
        existing = await self.store.get(PAYROLL_PERIODS_COLLECTION, period.period_id)
        if existing is not None:
            return False

        async with self.store.transaction() as txn:
            if await txn.get(PAYROLL_PERIODS_COLLECTION, period.period_id) is not None:
                return False
            txn.set(
                PAYROLL_PERIODS_COLLECTION,
                period.period_id,
                period_to_document(period, created_at=SERVER_TIMESTAMP),
            )

        logger.info("Created payroll period %s", period.period_id)
        return True

    async def get_period(self, period_id: str) -> dict[str, Any] | None:
        doc = await self.store.get(PAYROLL_PERIODS_COLLECTION, period_id)
        return _with_id(doc) if doc is not None else None

    async def list_periods(self, limit: int = 20) -> list[dict[str, Any]]:
        """Most recent periods first."""
        docs = await self.store.query(
            PAYROLL_PERIODS_COLLECTION,
            order_by=[OrderBy("payDate", descending=True)],
            limit=limit,
        )
        return [_with_id(doc) for doc in docs]


def _with_id(doc: Document) -> dict[str, Any]:
    return {**doc.data, "id": doc.id}
