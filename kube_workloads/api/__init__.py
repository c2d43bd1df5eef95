"""API routes for the workload management service."""

from fastapi import APIRouter

from .deployments import router as deployments_router
from .health import router as health_router
from .namespaces import router as namespaces_router
from .services import router as services_router

# Create main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(health_router, tags=["health"])
api_router.include_router(namespaces_router, prefix="/namespaces", tags=["namespaces"])
api_router.include_router(deployments_router, prefix="/deployments", tags=["deployments"])
api_router.include_router(services_router, prefix="/services", tags=["services"])

__all__ = ["api_router"]
