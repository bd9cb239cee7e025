"""Health & Readiness Probes: liveness and readiness endpoints.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if the backend is unreachable or not initialized
"""

import logging
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from recordstore.api import dependencies

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "recordstore-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check():
    """Readiness probe: includes backend connectivity."""
    store = dependencies.store
    backend_ok = await store.backend.ping() if store else False
    if not backend_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "backend_unavailable",
            },
        )
    return {"status": "ready", "checks": {"backend": "healthy"}}
