import logging

from fastapi import APIRouter, Request

router = APIRouter(prefix="", tags=["system"])

logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check_v1(request: Request) -> dict:
    """API v1 health endpoint."""
    logger.debug(
        "Health check from %s (%s)",
        request.client.host if request.client else "unknown",
        request.headers.get("user-agent", "-"),
    )
    return {"status": "ok", "version": "v1"}


@router.get("/liveness")
async def liveness() -> dict:
    return {"status": "alive"}
