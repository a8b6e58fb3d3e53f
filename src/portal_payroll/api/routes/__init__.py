"""API routes."""

from portal_payroll.api.routes.health import router as health_router
from portal_payroll.api.routes.periods import router as periods_router
from portal_payroll.api.routes.projections import router as projections_router
from portal_payroll.api.routes.timesheets import router as timesheets_router

__all__ = ["health_router", "periods_router", "projections_router", "timesheets_router"]
