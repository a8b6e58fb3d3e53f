"""SQLAlchemy-backed implementation of the document store port."""

from __future__ import annotations

import operator
from collections.abc import AsyncIterator, Callable, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal
from uuid import uuid4

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portal_payroll.models.documents import StoredDocument
from portal_payroll.store.base import (
    Document,
    DocumentNotFoundError,
    FieldFilter,
    OrderBy,
    StoreError,
    WriteConflictError,
)
from portal_payroll.store.codec import encode_value, to_instant

_OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "==": operator.eq,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


def new_document_id() -> str:
    """Generate a 20-character document id."""
    return uuid4().hex[:20]


def _field_expression(name: str, value: Any = None):
    """JSON element expression typed after the value it is compared with."""
    element = StoredDocument.data[name]
    if isinstance(value, bool):
        return element.as_boolean()
    if isinstance(value, (int, float, Decimal)):
        return element.as_float()
    return element.as_string()


def _stored_instant(value: Any) -> datetime | None:
    """Decoded instant of a stored field, or None when it holds no usable time."""
    if value is None or isinstance(value, (bool, int, float)):
        return None
    try:
        return to_instant(value)
    except (ValueError, TypeError, OverflowError, OSError):
        return None


def _sort_key(value: Any) -> tuple:
    """Order missing values first, then numbers, instants and anything else."""
    if value is None:
        return (0,)
    if isinstance(value, (bool, int, float)):
        return (1, value)
    if isinstance(value, (str, Mapping)):
        instant = _stored_instant(value)
        if instant is not None:
            return (2, instant)
    return (3, str(value))


def _to_document(row: StoredDocument) -> Document:
    return Document(id=row.doc_id, data=dict(row.data or {}))


@dataclass
class _PendingWrite:
    kind: Literal["set", "update", "delete"]
    collection: str
    doc_id: str
    data: dict[str, Any] | None = None


class _WriteQueue:
    """Collects writes until they are applied in one database transaction."""

    def __init__(self) -> None:
        self._writes: list[_PendingWrite] = []

    def set(self, collection: str, doc_id: str | None, data: dict[str, Any]) -> str:
        doc_id = doc_id or new_document_id()
        self._writes.append(_PendingWrite("set", collection, doc_id, dict(data)))
        return doc_id

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        self._writes.append(_PendingWrite("update", collection, doc_id, dict(fields)))

    def delete(self, collection: str, doc_id: str) -> None:
        self._writes.append(_PendingWrite("delete", collection, doc_id))

    def __len__(self) -> int:
        return len(self._writes)


async def _apply_writes(
    session: AsyncSession,
    writes: Sequence[_PendingWrite],
    now: datetime,
) -> None:
    for write in writes:
        row = await session.get(StoredDocument, (write.collection, write.doc_id))

        if write.kind == "set":
            data = encode_value(write.data or {}, now)
            if row is None:
                session.add(
                    StoredDocument(collection=write.collection, doc_id=write.doc_id, data=data)
                )
            else:
                row.data = data
        elif write.kind == "update":
            if row is None:
                raise DocumentNotFoundError(write.collection, write.doc_id)
            row.data = {**(row.data or {}), **encode_value(write.data or {}, now)}
        elif row is not None:
            await session.delete(row)

        await session.flush()


class SqlWriteBatch(_WriteQueue):
    """Atomic multi-document write batch."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Callable[[], datetime],
    ) -> None:
        super().__init__()
        self._session_factory = session_factory
        self._clock = clock

    async def commit(self) -> None:
        """Apply all queued writes in a single transaction."""
        if not self._writes:
            return

        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await _apply_writes(session, self._writes, self._clock())
        except IntegrityError as e:
            raise WriteConflictError(f"Batch commit collided with a concurrent write: {e}") from e
        except SQLAlchemyError as e:
            raise StoreError(f"Batch commit of {len(self._writes)} writes failed: {e}") from e

        self._writes = []


class SqlTransaction(_WriteQueue):
    """Read-modify-write transaction bound to one session."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__()
        self._session = session

    async def get(self, collection: str, doc_id: str) -> Document | None:
        result = await self._session.execute(
            select(StoredDocument)
            .where(
                StoredDocument.collection == collection,
                StoredDocument.doc_id == doc_id,
            )
            .with_for_update()
        )
        row = result.scalar_one_or_none()
        return _to_document(row) if row is not None else None


class SqlDocumentStore:
    """Document store over a single JSON ``documents`` table.

    A new session is opened for every operation, so independent reads may
    run concurrently on the same store instance.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._session_factory = session_factory
        self._clock = clock

    async def get(self, collection: str, doc_id: str) -> Document | None:
        try:
            async with self._session_factory() as session:
                row = await session.get(StoredDocument, (collection, doc_id))
                return _to_document(row) if row is not None else None
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read {collection}/{doc_id}: {e}") from e

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: Sequence[OrderBy] = (),
        limit: int | None = None,
    ) -> list[Document]:
        """Run a filtered, ordered query against one collection.

        Equality and range filters on plain values run in SQL. Filters whose
        value is a date or datetime, and every sort key, are evaluated on the
        decoded documents: stored instants come in several shapes (ISO
        strings with or without a time part, timestamp mappings) that do not
        compare correctly as JSON text.
        """
        stmt = select(StoredDocument).where(StoredDocument.collection == collection)

        temporal: list[tuple[str, Callable[[Any, Any], Any], datetime]] = []
        for flt in filters:
            try:
                compare = _OPERATORS[flt.op]
            except KeyError:
                raise ValueError(f"Unsupported filter operator: {flt.op}") from None
            if isinstance(flt.value, date):
                temporal.append((flt.field, compare, to_instant(flt.value)))
                continue
            value = encode_value(flt.value)
            stmt = stmt.where(compare(_field_expression(flt.field, value), value))

        stmt = stmt.order_by(StoredDocument.doc_id)
        in_memory = bool(temporal or order_by)
        if limit is not None and not in_memory:
            stmt = stmt.limit(limit)

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                documents = [_to_document(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            raise StoreError(f"Query on {collection} failed: {e}") from e

        if not in_memory:
            return documents

        for name, compare, bound in temporal:
            documents = [
                doc
                for doc in documents
                if (instant := _stored_instant(doc.get(name))) is not None
                and compare(instant, bound)
            ]

        # stable sorts applied last key first
        for key in reversed(order_by):
            documents.sort(key=lambda doc: _sort_key(doc.get(key.field)), reverse=key.descending)

        return documents[:limit] if limit is not None else documents

    def batch(self) -> SqlWriteBatch:
        return SqlWriteBatch(self._session_factory, self._clock)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[SqlTransaction]:
        """Open a transaction; queued writes are applied when the block exits."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    txn = SqlTransaction(session)
                    yield txn
                    await _apply_writes(session, txn._writes, self._clock())
        except IntegrityError as e:
            raise WriteConflictError(f"Transaction collided with a concurrent write: {e}") from e
        except SQLAlchemyError as e:
            raise StoreError(f"Transaction failed: {e}") from e

    async def ping(self) -> bool:
        """Return True when the backing database answers."""
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False
