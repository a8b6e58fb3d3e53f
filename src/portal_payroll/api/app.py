"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from portal_payroll.api.routes import (
    health_router,
    periods_router,
    projections_router,
    timesheets_router,
)
from portal_payroll.calculators.periods import InvalidPayDateError
from portal_payroll.config import Settings, get_settings
from portal_payroll.database import create_engine, create_schema, create_session_factory
from portal_payroll.services.run_lock import ReconciliationInProgressError
from portal_payroll.services.timesheet_reconciler import InvalidWindowError
from portal_payroll.store import SqlDocumentStore, StoreError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    engine = create_engine(app.state.settings)
    await create_schema(engine)
    app.state.store = SqlDocumentStore(create_session_factory(engine))
    yield
    # Shutdown
    await engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Portal Payroll API",
        description="Timesheet reconciliation, payroll periods and revenue projections",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings or get_settings()

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(InvalidPayDateError)
    async def invalid_pay_date_handler(
        request: Request, exc: InvalidPayDateError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": str(exc),
                "code": "INVALID_PAY_DATE",
                "context": {"pay_date": exc.pay_date.isoformat()},
            },
        )

    @app.exception_handler(InvalidWindowError)
    async def invalid_window_handler(
        request: Request, exc: InvalidWindowError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": str(exc), "code": "INVALID_WINDOW"},
        )

    @app.exception_handler(ReconciliationInProgressError)
    async def in_progress_handler(
        request: Request, exc: ReconciliationInProgressError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={
                "detail": str(exc),
                "code": "RECONCILIATION_IN_PROGRESS",
                "context": {"expires_at": exc.expires_at.isoformat()},
            },
        )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        logger.error("Document store failure on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Document store unavailable", "code": "STORE_UNAVAILABLE"},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(timesheets_router, prefix="/api/v1")
    app.include_router(periods_router, prefix="/api/v1")
    app.include_router(projections_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
