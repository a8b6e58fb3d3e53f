"""Pytest fixtures for portal payroll tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from portal_payroll.database import create_schema, create_session_factory
from portal_payroll.store import SqlDocumentStore

# Fixed "server clock" for documents written during tests
STORE_NOW = datetime(2026, 1, 20, 9, 0, 0)

Seeder = Callable[[str, dict[str, dict[str, Any]]], Awaitable[None]]


@pytest.fixture
def database_url(tmp_path) -> str:
    """File-backed SQLite so concurrent sessions share one database."""
    return f"sqlite+aiosqlite:///{tmp_path / 'store.db'}"


@pytest_asyncio.fixture
async def engine(database_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Create test database engine with the documents table."""
    engine = create_async_engine(database_url, echo=False)
    await create_schema(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def store(engine: AsyncEngine) -> SqlDocumentStore:
    return SqlDocumentStore(create_session_factory(engine), clock=lambda: STORE_NOW)


@pytest.fixture
def seed(store: SqlDocumentStore) -> Seeder:
    """Write documents into a collection in one batch."""

    async def _seed(collection: str, documents: dict[str, dict[str, Any]]) -> None:
        batch = store.batch()
        for doc_id, data in documents.items():
            batch.set(collection, doc_id, data)
        await batch.commit()

    return _seed


# ============================================================================
# Reconciliation fixtures
# ============================================================================


@pytest.fixture
def hourly_rate() -> dict[str, Any]:
    return {
        "employeeId": "emp-1",
        "rateType": "hourly",
        "amount": 25,
        "effectiveDate": datetime(2025, 1, 1),
    }


@pytest.fixture
def cleaning_job() -> dict[str, Any]:
    return {
        "serviceDate": datetime(2026, 1, 5, 9, 0),
        "assignedEmployees": ["emp-1"],
        "locationId": "loc-1",
        "clientProfileId": "client-1",
        "status": "scheduled",
    }


@pytest.fixture
def day_shift() -> dict[str, Any]:
    return {
        "employeeProfileId": "emp-1",
        "locationId": "loc-1",
        "clockInTime": datetime(2026, 1, 5, 8, 0),
        "clockOutTime": datetime(2026, 1, 5, 16, 30),
    }
