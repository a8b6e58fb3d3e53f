"""Generic document table backing the document store adapter."""

from __future__ import annotations

from typing import Any

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from portal_payroll.models.base import Base, TimestampMixin


class StoredDocument(Base, TimestampMixin):
    """One document in a named collection.

    Field values are kept in a JSON column using the encoding from
    ``portal_payroll.store.codec`` so that equality and range filters can
    be pushed down to the database.
    """

    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(String(128), primary_key=True)
    doc_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    data: Mapped[dict[str, Any]] = mapped_column(nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<StoredDocument {self.collection}/{self.doc_id}>"
