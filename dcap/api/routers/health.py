"""
Health check endpoints for the dcap API.
"""
import logging

from fastapi import APIRouter, Request, Response, status

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health", status_code=status.HTTP_200_OK)
async def liveness_check():
    """Liveness check - confirms the app is running."""
    return {"status": "healthy"}


@router.get("/health/ready", status_code=status.HTTP_200_OK)
async def readiness_check(request: Request, response: Response):
    """Readiness check - types are loaded and every type has a catalog."""
    registry = request.app.state.registry
    unseeded = [
        name for name in registry.list_names()
        if not registry.get(name).catalog_hash
    ]
    if unseeded:
        logger.error(f"Readiness check failed, types without catalog: {unseeded}")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "not_ready", "types": registry.count(), "unseeded": unseeded}

    return {"status": "ready", "types": registry.count()}
