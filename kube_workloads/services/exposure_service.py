"""
Service (network exposure) operations.

Creation is not idempotent and performs no local existence check; the control
plane reports collisions. The selector is not checked against any deployment.
"""

import logging
from typing import Optional

from kubernetes import client

from ..exceptions import translate_api_errors
from ..models.services import ExposureSpec, ServicePortSpec, ServiceType
from ..telemetry import traced
from .cluster_client import ClusterClient
from .namespace_service import NamespaceService, continue_token

logger = logging.getLogger(__name__)


def build_service(namespace: str, spec: ExposureSpec) -> client.V1Service:
    """Build the Kubernetes object for an exposure spec."""
    return client.V1Service(
        api_version="v1",
        kind="Service",
        metadata=client.V1ObjectMeta(
            name=spec.name,
            namespace=namespace,
            labels=dict(spec.labels) or None,
        ),
        spec=client.V1ServiceSpec(
            type=spec.type.value,
            selector=dict(spec.selector) or None,
            ports=[
                client.V1ServicePort(
                    name=p.name,
                    protocol=p.protocol.value,
                    port=p.port,
                    target_port=p.target_port,
                    node_port=p.node_port,
                )
                for p in spec.ports
            ],
        ),
    )


def to_exposure(svc: client.V1Service) -> ExposureSpec:
    """Convert a Kubernetes service into an ``ExposureSpec``."""
    ports = []
    for port in svc.spec.ports or []:
        # Named target ports cannot be expressed as a number
        target_port = port.target_port if isinstance(port.target_port, int) else None
        ports.append(
            ServicePortSpec(
                name=port.name,
                protocol=port.protocol or "TCP",
                port=port.port,
                target_port=target_port,
                node_port=port.node_port,
            )
        )

    return ExposureSpec(
        name=svc.metadata.name,
        namespace=svc.metadata.namespace,
        labels=svc.metadata.labels or {},
        selector=svc.spec.selector or {},
        type=svc.spec.type or "ClusterIP",
        ports=ports,
        cluster_ip=svc.spec.cluster_ip,
        created_at=svc.metadata.creation_timestamp,
    )


class ExposureService:
    """Service for Kubernetes Service resources."""

    def __init__(self, cluster: ClusterClient, namespaces: Optional[NamespaceService] = None):
        self.cluster = cluster
        self.namespaces = namespaces or NamespaceService(cluster)

    @traced("create_service")
    def create_service(self, namespace: str, spec: ExposureSpec) -> ExposureSpec:
        """Create a service. Fails with ``AlreadyExistsError`` on a name collision."""
        if spec.namespace and spec.namespace != namespace:
            raise ValueError(
                f"service {spec.name} targets namespace {spec.namespace}, not {namespace}"
            )
        if spec.type == ServiceType.EXTERNAL_NAME:
            raise ValueError(f"service {spec.name}: ExternalName services cannot be created")
        if not spec.ports:
            raise ValueError(f"service {spec.name} needs at least one port mapping")

        with translate_api_errors("create", "service", namespace, spec.name):
            created = self.cluster.core_api.create_namespaced_service(
                namespace=namespace,
                body=build_service(namespace, spec),
                **self.cluster.request_options(),
            )
        logger.info(f"Created service {spec.name} in {namespace}")
        return to_exposure(created)

    @traced("list_services")
    def list_services(self, namespace: str) -> list[ExposureSpec]:
        """List the services of one namespace."""
        result: list[ExposureSpec] = []
        token = None
        while True:
            with translate_api_errors("list", "services", namespace):
                services = self.cluster.core_api.list_namespaced_service(
                    namespace=namespace,
                    limit=self.cluster.page_size,
                    _continue=token,
                    **self.cluster.request_options(),
                )
            result.extend(to_exposure(svc) for svc in services.items)
            token = continue_token(services)
            if not token:
                break
        return result

    @traced("list_services_all_namespaces")
    def list_services_all_namespaces(self) -> list[tuple[str, ExposureSpec]]:
        """List services of every namespace. The first failure aborts the listing."""
        result: list[tuple[str, ExposureSpec]] = []
        for namespace in self.namespaces.list_namespaces():
            for service in self.list_services(namespace):
                result.append((namespace, service))
        return result
