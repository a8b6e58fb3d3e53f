"""Document store port.

The reconciliation and projection services talk to the persistent store
only through the ``DocumentStore`` protocol: filtered/ordered queries,
single-document reads, an atomic multi-document ``WriteBatch`` and a
read-modify-write ``Transaction``.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol, Sequence

FilterOp = Literal["==", "<", "<=", ">", ">="]


class StoreError(Exception):
    """Raised when the document store cannot complete an operation."""


class WriteConflictError(StoreError):
    """Raised when a write collides with a concurrent write to the same document."""


class DocumentNotFoundError(StoreError):
    """Raised when an update targets a document that does not exist."""

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"Document {collection}/{doc_id} does not exist")


@dataclass(frozen=True)
class Document:
    """A document snapshot: its id and decoded field data."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        return self.data.get(name, default)


@dataclass(frozen=True)
class FieldFilter:
    """A single field predicate, e.g. ``FieldFilter("employeeId", "==", "e1")``."""

    field: str
    op: FilterOp
    value: Any


@dataclass(frozen=True)
class OrderBy:
    """Sort key for a query."""

    field: str
    descending: bool = False


class WriteBatch(Protocol):
    """Writes collected in memory and applied atomically on commit."""

    def set(self, collection: str, doc_id: str | None, data: dict[str, Any]) -> str:
        """Create or replace a document; returns its id (generated when None)."""
        ...

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Merge top-level fields into an existing document."""
        ...

    def delete(self, collection: str, doc_id: str) -> None:
        ...

    async def commit(self) -> None:
        """Apply every queued write or none of them."""
        ...

    def __len__(self) -> int:
        ...


class Transaction(Protocol):
    """Read-modify-write unit; reads see committed state, writes apply on exit."""

    async def get(self, collection: str, doc_id: str) -> Document | None:
        ...

    def set(self, collection: str, doc_id: str | None, data: dict[str, Any]) -> str:
        ...

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        ...

    def delete(self, collection: str, doc_id: str) -> None:
        ...


class DocumentStore(Protocol):
    """Collaborator interface for the persistent document store."""

    async def get(self, collection: str, doc_id: str) -> Document | None:
        ...

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: Sequence[OrderBy] = (),
        limit: int | None = None,
    ) -> list[Document]:
        ...

    def batch(self) -> WriteBatch:
        ...

    def transaction(self) -> AbstractAsyncContextManager[Transaction]:
        ...

    async def ping(self) -> bool:
        ...
