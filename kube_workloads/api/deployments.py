"""Deployment management API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..models.deployments import ImageUpdateRequest, WorkloadSpec
from ..services import DeploymentReader, DeploymentWriter
from .dependencies import get_deployment_reader, get_deployment_writer

router = APIRouter()


@router.get("", response_model=list[WorkloadSpec])
def list_deployments(
    namespace: Optional[str] = Query(None, description="Filter by namespace"),
    reader: DeploymentReader = Depends(get_deployment_reader),
) -> list[WorkloadSpec]:
    """List deployments of one namespace, or of every namespace."""
    if namespace:
        return reader.list_deployments(namespace)
    return [workload for _, workload in reader.list_deployments_all_namespaces()]


@router.get("/{namespace}/{name}", response_model=WorkloadSpec)
def get_deployment(
    namespace: str,
    name: str,
    reader: DeploymentReader = Depends(get_deployment_reader),
) -> WorkloadSpec:
    """Get a specific deployment."""
    return reader.get_deployment(namespace, name)


@router.post("/{namespace}", response_model=WorkloadSpec, status_code=201)
def create_deployment(
    namespace: str,
    spec: WorkloadSpec,
    writer: DeploymentWriter = Depends(get_deployment_writer),
) -> WorkloadSpec:
    """Create a new deployment."""
    return writer.create_deployment(namespace, spec)


@router.post("/{namespace}/{name}/scale", response_model=WorkloadSpec)
def scale_deployment(
    namespace: str,
    name: str,
    writer: DeploymentWriter = Depends(get_deployment_writer),
) -> WorkloadSpec:
    """Apply one scaling step (above 2 replicas step down, otherwise step up)."""
    return writer.scale_deployment(namespace, name)


@router.put("/{namespace}/{name}/containers/{index}/image", response_model=WorkloadSpec)
def set_container_image(
    namespace: str,
    name: str,
    index: int,
    request: ImageUpdateRequest,
    writer: DeploymentWriter = Depends(get_deployment_writer),
) -> WorkloadSpec:
    """Replace the image of one container."""
    return writer.set_container_image(namespace, name, index, request.image)


@router.delete("/{namespace}/{name}", status_code=204)
def delete_deployment(
    namespace: str,
    name: str,
    writer: DeploymentWriter = Depends(get_deployment_writer),
) -> None:
    """Delete a deployment."""
    writer.delete_deployment(namespace, name)
