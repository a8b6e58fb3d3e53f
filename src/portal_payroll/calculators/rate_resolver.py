"""Effective-dated pay rate resolution with scope fallback."""

from __future__ import annotations

import logging
from datetime import datetime

from pydantic import ValidationError

from portal_payroll.models.payroll import RATES_COLLECTION, RateRecord, RateSnapshot
from portal_payroll.store.base import DocumentStore, FieldFilter, OrderBy

logger = logging.getLogger(__name__)


class RateResolver:
    """Resolves the pay rate in effect for an employee at a point in time.

    Rate selection priority:
    1. Latest rate with effective date <= T scoped to the location
    2. Latest rate with effective date <= T scoped to the client
    3. Latest rate with effective date <= T regardless of scope

    The first tier that yields a valid record wins. A miss is not an
    error: callers receive None and decide what to skip.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    async def resolve(
        self,
        employee_id: str,
        effective_at: datetime,
        location_id: str | None = None,
        client_id: str | None = None,
    ) -> RateSnapshot | None:
        """Resolve a rate snapshot for an employee.

        Args:
            employee_id: Employee whose rates are searched
            effective_at: Instant the rate must be in effect at
            location_id: Optional location scope tried first
            client_id: Optional client scope tried second

        Returns:
            A frozen snapshot of the winning rate, or None
        """
        record = await self.resolve_record(employee_id, effective_at, location_id, client_id)
        return record.to_snapshot() if record is not None else None

    async def resolve_record(
        self,
        employee_id: str,
        effective_at: datetime,
        location_id: str | None = None,
        client_id: str | None = None,
    ) -> RateRecord | None:
        tiers: list[FieldFilter | None] = []
        if location_id:
            tiers.append(FieldFilter("locationId", "==", location_id))
        if client_id:
            tiers.append(FieldFilter("clientProfileId", "==", client_id))
        tiers.append(None)

        for scope in tiers:
            record = await self._latest_rate(employee_id, effective_at, scope)
            if record is not None:
                return record

        logger.warning(
            "No rate found for employee %s at %s (location=%s, client=%s)",
            employee_id,
            effective_at.isoformat(),
            location_id,
            client_id,
        )
        return None

    async def _latest_rate(
        self,
        employee_id: str,
        effective_at: datetime,
        scope: FieldFilter | None,
    ) -> RateRecord | None:
        filters = [FieldFilter("employeeId", "==", employee_id)]
        if scope is not None:
            filters.append(scope)
        filters.append(FieldFilter("effectiveDate", "<=", effective_at))

        docs = await self.store.query(
            RATES_COLLECTION,
            filters=filters,
            order_by=[OrderBy("effectiveDate", descending=True)],
            limit=1,
        )
        if not docs:
            return None

        try:
            return RateRecord.from_document(docs[0].id, docs[0].data)
        except ValidationError as e:
            logger.warning("Ignoring invalid rate record %s: %s", docs[0].id, e)
            return None
