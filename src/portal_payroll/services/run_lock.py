"""Lease lock keeping timesheet reconciliation runs from overlapping."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from uuid import uuid4

from portal_payroll.store.base import DocumentStore, WriteConflictError
from portal_payroll.store.codec import to_instant

logger = logging.getLogger(__name__)

LOCKS_COLLECTION = "reconciliationLocks"


class ReconciliationInProgressError(Exception):
    """Raised when another reconciliation run holds the lease."""

    def __init__(self, holder: str, expires_at: datetime):
        self.holder = holder
        self.expires_at = expires_at
        super().__init__(
            f"Reconciliation already running (lease {holder} held until {expires_at.isoformat()})"
        )


class ReconciliationLock:
    """Lease document acquired and released inside store transactions.

    Duplicate detection during reconciliation is read-then-write, so only
    one run may hold the lease at a time. An expired lease (crashed run)
    can be taken over.
    """

    def __init__(
        self,
        store: DocumentStore,
        name: str = "timesheets",
        ttl: timedelta = timedelta(minutes=15),
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.name = name
        self.ttl = ttl
        self.clock = clock

    async def acquire(self, window_start: datetime, window_end: datetime) -> str:
        """Take the lease and return its token.

        Raises:
            ReconciliationInProgressError: If a live lease exists, or another run
                created the lease between our read and our write
        """
        token = uuid4().hex
        now = self.clock()

        try:
            await self._write_lease(token, now, window_start, window_end)
        except WriteConflictError:
            # lost the insert race; the winner's lease is what blocks us
            current = await self.store.get(LOCKS_COLLECTION, self.name)
            if current is None:
                raise ReconciliationInProgressError("?", now + self.ttl) from None
            expires_at = to_instant(current.get("expiresAt")) or now + self.ttl
            raise ReconciliationInProgressError(current.get("token", "?"), expires_at) from None

        return token

    async def _write_lease(
        self, token: str, now: datetime, window_start: datetime, window_end: datetime
    ) -> None:
        async with self.store.transaction() as txn:
            current = await txn.get(LOCKS_COLLECTION, self.name)
            if current is not None:
                expires_at = to_instant(current.get("expiresAt"))
                if expires_at is not None and expires_at > now:
                    raise ReconciliationInProgressError(current.get("token", "?"), expires_at)
                logger.warning("Taking over expired reconciliation lease %s", current.get("token"))

            txn.set(
                LOCKS_COLLECTION,
                self.name,
                {
                    "token": token,
                    "windowStart": window_start,
                    "windowEnd": window_end,
                    "acquiredAt": now,
                    "expiresAt": now + self.ttl,
                },
            )

    async def release(self, token: str) -> bool:
        """Release the lease if ``token`` still owns it."""
        async with self.store.transaction() as txn:
            current = await txn.get(LOCKS_COLLECTION, self.name)
            if current is None or current.get("token") != token:
                return False
            txn.delete(LOCKS_COLLECTION, self.name)
        return True

    @asynccontextmanager
    async def hold(self, window_start: datetime, window_end: datetime) -> AsyncIterator[str]:
        token = await self.acquire(window_start, window_end)
        try:
            yield token
        finally:
            await self.release(token)
