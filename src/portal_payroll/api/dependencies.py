"""FastAPI dependencies for dependency injection."""

from datetime import timedelta
from typing import Annotated

from fastapi import Depends, Request

from portal_payroll.config import Settings
from portal_payroll.services import (
    AgreementProjectionEngine,
    PayrollPeriodService,
    PayrollReadinessService,
    ReconciliationLock,
    TimesheetApprovalService,
    TimesheetReconciler,
)
from portal_payroll.store.base import DocumentStore


def get_store(request: Request) -> DocumentStore:
    """Document store created during application startup."""
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


# Type aliases for cleaner dependency injection
Store = Annotated[DocumentStore, Depends(get_store)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]


def get_reconciler(store: Store, settings: AppSettings) -> TimesheetReconciler:
    lock = ReconciliationLock(
        store,
        ttl=timedelta(seconds=settings.reconcile_lock_ttl_seconds),
    )
    return TimesheetReconciler(
        store,
        lock=lock,
        concurrency=settings.reconcile_concurrency,
    )


def get_approval_service(store: Store) -> TimesheetApprovalService:
    return TimesheetApprovalService(store)


def get_period_service(store: Store) -> PayrollPeriodService:
    return PayrollPeriodService(store)


def get_readiness_service(store: Store) -> PayrollReadinessService:
    return PayrollReadinessService(store)


def get_projection_engine(store: Store, settings: AppSettings) -> AgreementProjectionEngine:
    return AgreementProjectionEngine(
        store,
        full_series=settings.projection_full_series,
        upcoming_days=settings.upcoming_window_days,
    )


Reconciler = Annotated[TimesheetReconciler, Depends(get_reconciler)]
ApprovalService = Annotated[TimesheetApprovalService, Depends(get_approval_service)]
PeriodService = Annotated[PayrollPeriodService, Depends(get_period_service)]
ReadinessService = Annotated[PayrollReadinessService, Depends(get_readiness_service)]
ProjectionEngine = Annotated[AgreementProjectionEngine, Depends(get_projection_engine)]
