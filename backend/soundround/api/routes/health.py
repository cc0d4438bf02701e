"""Health — liveness for the process, readiness for the round store.

Invariants:
    - GET /api/health/ answers 200 whenever the process serves requests
    - GET /api/health/ready answers 503 with reason "store_unavailable"
      unless the round store answers a ping
    - An app.state without a store counts as not ready
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("/")
async def liveness() -> dict:
    return {"status": "healthy", "service": "soundround-api"}


@router.get("/ready")
async def readiness(request: Request) -> JSONResponse:
    store = getattr(request.app.state, "store", None)
    if store is not None and await store.ping():
        return JSONResponse({"status": "ready", "store": "ok"})
    return JSONResponse(
        {"status": "not_ready", "reason": "store_unavailable"},
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
    )
