"""Shared FastAPI dependencies."""

import threading

from fastapi import Depends, Request

from ..config import Settings, get_settings
from ..services import (
    ClusterClient,
    DeploymentReader,
    DeploymentWriter,
    ExposureService,
    NamespaceService,
)

_connect_lock = threading.Lock()


def get_cluster(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> ClusterClient:
    """Return the app-wide cluster client, connecting on first use."""
    cluster = getattr(request.app.state, "cluster", None)
    if cluster is not None:
        return cluster
    with _connect_lock:
        cluster = getattr(request.app.state, "cluster", None)
        if cluster is None:
            cluster = ClusterClient.connect(settings.kubernetes)
            request.app.state.cluster = cluster
    return cluster


def get_namespace_service(cluster: ClusterClient = Depends(get_cluster)) -> NamespaceService:
    return NamespaceService(cluster)


def get_deployment_reader(
    cluster: ClusterClient = Depends(get_cluster),
    namespaces: NamespaceService = Depends(get_namespace_service),
) -> DeploymentReader:
    return DeploymentReader(cluster, namespaces)


def get_deployment_writer(
    cluster: ClusterClient = Depends(get_cluster),
    settings: Settings = Depends(get_settings),
) -> DeploymentWriter:
    return DeploymentWriter(cluster, settings.kubernetes.delete_propagation)


def get_exposure_service(
    cluster: ClusterClient = Depends(get_cluster),
    namespaces: NamespaceService = Depends(get_namespace_service),
) -> ExposureService:
    return ExposureService(cluster, namespaces)
