"""Liveness, readiness and store health probes."""

from datetime import datetime, timezone

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from portal_payroll import __version__
from portal_payroll.api.dependencies import Store

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
    document_store: str


@router.get("/health", response_model=HealthResponse)
async def health_check(store: Store) -> HealthResponse:
    """Report whether the document store answers; degraded otherwise."""
    reachable = await store.ping()
    return HealthResponse(
        status="healthy" if reachable else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        document_store="reachable" if reachable else "unreachable",
    )


@router.get("/ready")
async def readiness_check(store: Store, response: Response) -> dict[str, str]:
    """Ready only once the store accepts queries."""
    if not await store.ping():
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "not_ready"}
    return {"status": "ready"}


@router.get("/live")
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}
