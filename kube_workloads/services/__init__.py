"""Service layer for cluster resource operations."""

from .cluster_client import ClusterClient
from .deployment_service import (
    DeploymentReader,
    DeploymentWriter,
    SCALE_STEP,
    SCALE_THRESHOLD,
    toggle_replicas,
)
from .exposure_service import ExposureService
from .namespace_service import NamespaceService

__all__ = [
    "ClusterClient",
    "NamespaceService",
    "DeploymentReader",
    "DeploymentWriter",
    "ExposureService",
    "SCALE_STEP",
    "SCALE_THRESHOLD",
    "toggle_replicas",
]
