"""Document store port and adapters."""

from portal_payroll.store.base import (
    Document,
    DocumentNotFoundError,
    DocumentStore,
    FieldFilter,
    OrderBy,
    StoreError,
    Transaction,
    WriteBatch,
    WriteConflictError,
)
from portal_payroll.store.codec import SERVER_TIMESTAMP, encode_value, to_instant
from portal_payroll.store.sql_store import SqlDocumentStore

__all__ = [
    "Document",
    "DocumentNotFoundError",
    "DocumentStore",
    "FieldFilter",
    "OrderBy",
    "SERVER_TIMESTAMP",
    "SqlDocumentStore",
    "StoreError",
    "Transaction",
    "WriteBatch",
    "WriteConflictError",
    "encode_value",
    "to_instant",
]
