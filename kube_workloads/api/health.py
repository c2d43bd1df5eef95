"""Health check endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from .. import __version__
from ..config import Settings, get_settings
from ..exceptions import ClusterError
from ..services import NamespaceService
from .dependencies import get_cluster

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthStatus(BaseModel):
    """Health status response."""

    status: str
    version: str
    kubernetes_connected: bool
    error: Optional[str] = None


@router.get("/health", response_model=HealthStatus)
def health_check(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> HealthStatus:
    """Check the control-plane connection."""
    try:
        cluster = get_cluster(request, settings)
        NamespaceService(cluster).list_namespaces()
    except ClusterError as e:
        logger.warning(f"Health check failed: {e}")
        return HealthStatus(
            status="degraded",
            version=__version__,
            kubernetes_connected=False,
            error=str(e),
        )

    return HealthStatus(
        status="healthy",
        version=__version__,
        kubernetes_connected=True,
    )


@router.get("/ready")
def readiness_check() -> dict:
    """Kubernetes readiness probe."""
    return {"ready": True}


@router.get("/live")
def liveness_check() -> dict:
    """Kubernetes liveness probe."""
    return {"live": True}
