"""API routers."""

from dcap.api.routers.documents import router as documents_router
from dcap.api.routers.health import router as health_router
from dcap.api.routers.types import router as types_router

__all__ = ["documents_router", "health_router", "types_router"]
