"""Service (network exposure) API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..models.services import ExposureSpec
from ..services import ExposureService
from .dependencies import get_exposure_service

router = APIRouter()


@router.get("", response_model=list[ExposureSpec])
def list_services(
    namespace: Optional[str] = Query(None, description="Filter by namespace"),
    service: ExposureService = Depends(get_exposure_service),
) -> list[ExposureSpec]:
    """List services of one namespace, or of every namespace."""
    if namespace:
        return service.list_services(namespace)
    return [svc for _, svc in service.list_services_all_namespaces()]


@router.post("/{namespace}", response_model=ExposureSpec, status_code=201)
def create_service(
    namespace: str,
    spec: ExposureSpec,
    service: ExposureService = Depends(get_exposure_service),
) -> ExposureSpec:
    """Create a service."""
    return service.create_service(namespace, spec)
