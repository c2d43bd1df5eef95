"""
Deployment management service.

Provides operations for listing, creating, scaling, updating, and deleting
deployments. Mutations are read-modify-write: the current object is read,
changed in place, and submitted with ``replace``.
"""

import logging
from typing import Callable, Optional

from kubernetes import client

from ..exceptions import ContainerIndexError, translate_api_errors
from ..models.deployments import (
    ContainerPort,
    ContainerSpec,
    PullPolicy,
    WorkloadSpec,
)
from ..telemetry import traced
from .cluster_client import ClusterClient
from .namespace_service import NamespaceService, continue_token

logger = logging.getLogger(__name__)

# Scaling policy: above the threshold step down, otherwise step up.
SCALE_THRESHOLD = 2
SCALE_STEP = 1


def toggle_replicas(current: int) -> int:
    """Replica count after one scaling step.

    Oscillates around ``SCALE_THRESHOLD``: 3 -> 2, 2 -> 3, 1 -> 2.
    """
    if current > SCALE_THRESHOLD:
        return current - SCALE_STEP
    return current + SCALE_STEP


def build_deployment(namespace: str, spec: WorkloadSpec) -> client.V1Deployment:
    """Build the Kubernetes object for a workload spec."""
    containers = []
    for c in spec.containers:
        containers.append(
            client.V1Container(
                name=c.name,
                image=c.image,
                image_pull_policy=c.image_pull_policy.value,
                ports=[
                    client.V1ContainerPort(
                        name=p.name,
                        container_port=p.container_port,
                        protocol=p.protocol.value,
                    )
                    for p in c.ports
                ]
                or None,
            )
        )

    template = client.V1PodTemplateSpec(
        metadata=client.V1ObjectMeta(labels=dict(spec.template_labels)),
        spec=client.V1PodSpec(containers=containers),
    )

    return client.V1Deployment(
        api_version="apps/v1",
        kind="Deployment",
        metadata=client.V1ObjectMeta(
            name=spec.name,
            namespace=namespace,
            labels=dict(spec.labels) or None,
        ),
        spec=client.V1DeploymentSpec(
            replicas=spec.replicas,
            selector=client.V1LabelSelector(match_labels=dict(spec.selector)),
            template=template,
        ),
    )


def to_workload(deploy: client.V1Deployment) -> WorkloadSpec:
    """Convert a Kubernetes deployment into a ``WorkloadSpec``."""
    pod_spec = deploy.spec.template.spec
    containers = []
    for c in pod_spec.containers or []:
        containers.append(
            ContainerSpec(
                name=c.name,
                image=c.image or "",
                image_pull_policy=c.image_pull_policy or PullPolicy.IF_NOT_PRESENT,
                ports=[
                    ContainerPort(
                        name=p.name,
                        container_port=p.container_port,
                        protocol=p.protocol or "TCP",
                    )
                    for p in c.ports or []
                ],
            )
        )

    selector = {}
    if deploy.spec.selector and deploy.spec.selector.match_labels:
        selector = dict(deploy.spec.selector.match_labels)

    template_labels = {}
    if deploy.spec.template.metadata and deploy.spec.template.metadata.labels:
        template_labels = dict(deploy.spec.template.metadata.labels)

    status = deploy.status
    return WorkloadSpec(
        name=deploy.metadata.name,
        namespace=deploy.metadata.namespace,
        replicas=current_replicas(deploy),
        labels=deploy.metadata.labels or {},
        selector=selector,
        template_labels=template_labels,
        containers=containers,
        ready_replicas=(status.ready_replicas or 0) if status else 0,
        available_replicas=(status.available_replicas or 0) if status else 0,
        resource_version=deploy.metadata.resource_version,
        created_at=deploy.metadata.creation_timestamp,
    )


def current_replicas(deploy: client.V1Deployment) -> int:
    """Desired replica count; an unset count means the API default of 1."""
    if deploy.spec.replicas is None:
        return 1
    return deploy.spec.replicas


def read_deployment(cluster: ClusterClient, namespace: str, name: str) -> client.V1Deployment:
    """Fetch the raw deployment object. Raises ``NotFoundError`` if absent."""
    with translate_api_errors("read", "deployment", namespace, name):
        return cluster.apps_api.read_namespaced_deployment(
            name=name,
            namespace=namespace,
            **cluster.request_options(),
        )


class DeploymentReader:
    """Read-only deployment operations."""

    def __init__(self, cluster: ClusterClient, namespaces: Optional[NamespaceService] = None):
        self.cluster = cluster
        self.namespaces = namespaces or NamespaceService(cluster)

    @traced("list_deployments")
    def list_deployments(self, namespace: str) -> list[WorkloadSpec]:
        """List the deployments of one namespace."""
        result: list[WorkloadSpec] = []
        token = None
        while True:
            with translate_api_errors("list", "deployments", namespace):
                deployments = self.cluster.apps_api.list_namespaced_deployment(
                    namespace=namespace,
                    limit=self.cluster.page_size,
                    _continue=token,
                    **self.cluster.request_options(),
                )
            result.extend(to_workload(deploy) for deploy in deployments.items)
            token = continue_token(deployments)
            if not token:
                break
        return result

    @traced("list_deployments_all_namespaces")
    def list_deployments_all_namespaces(self) -> list[tuple[str, WorkloadSpec]]:
        """
        List deployments of every namespace, one namespace at a time.

        The first namespace that fails aborts the whole listing; no partial
        result is returned.
        """
        result: list[tuple[str, WorkloadSpec]] = []
        for namespace in self.namespaces.list_namespaces():
            for workload in self.list_deployments(namespace):
                result.append((namespace, workload))
        return result

    @traced("get_deployment")
    def get_deployment(self, namespace: str, name: str) -> WorkloadSpec:
        """Get a specific deployment."""
        return to_workload(read_deployment(self.cluster, namespace, name))


class DeploymentWriter:
    """Deployment mutations."""

    def __init__(self, cluster: ClusterClient, delete_propagation: str = "Background"):
        self.cluster = cluster
        self.delete_propagation = delete_propagation

    def _replace(self, namespace: str, deploy: client.V1Deployment) -> client.V1Deployment:
        name = deploy.metadata.name
        with translate_api_errors("update", "deployment", namespace, name):
            return self.cluster.apps_api.replace_namespaced_deployment(
                name=name,
                namespace=namespace,
                body=deploy,
                **self.cluster.request_options(),
            )

    @traced("create_deployment")
    def create_deployment(self, namespace: str, spec: WorkloadSpec) -> WorkloadSpec:
        """Create a new deployment. Fails with ``AlreadyExistsError`` on a name collision."""
        if spec.namespace and spec.namespace != namespace:
            raise ValueError(
                f"deployment {spec.name} targets namespace {spec.namespace}, not {namespace}"
            )
        if not spec.selector:
            raise ValueError(f"deployment {spec.name} needs a non-empty selector")

        with translate_api_errors("create", "deployment", namespace, spec.name):
            created = self.cluster.apps_api.create_namespaced_deployment(
                namespace=namespace,
                body=build_deployment(namespace, spec),
                **self.cluster.request_options(),
            )
        logger.info(f"Created deployment {spec.name} in {namespace}")
        return to_workload(created)

    @traced("scale_deployment")
    def scale_deployment(
        self,
        namespace: str,
        name: str,
        policy: Callable[[int], int] = toggle_replicas,
    ) -> WorkloadSpec:
        """
        Apply one scaling step to a deployment.

        Reads the deployment, computes ``policy(current_replicas)`` and
        replaces it. There is no lock between the read and the write; a
        concurrent edit makes the replace fail with ``ConflictError``.
        """
        deploy = read_deployment(self.cluster, namespace, name)
        previous = current_replicas(deploy)
        replicas = policy(previous)
        if replicas < 0:
            raise ValueError(f"scaling policy returned negative replica count {replicas}")

        deploy.spec.replicas = replicas
        updated = self._replace(namespace, deploy)
        logger.info(
            f"Scaled deployment {name} in {namespace} from {previous} to "
            f"{updated.spec.replicas} replicas"
        )
        return to_workload(updated)

    @traced("set_container_image")
    def set_container_image(
        self,
        namespace: str,
        name: str,
        container_index: int,
        image: str,
    ) -> WorkloadSpec:
        """Replace the image of one container, leaving every other field untouched."""
        deploy = read_deployment(self.cluster, namespace, name)
        containers = deploy.spec.template.spec.containers or []
        if not 0 <= container_index < len(containers):
            raise ContainerIndexError(
                f"container index {container_index} out of range for deployment "
                f"{namespace}/{name} with {len(containers)} container(s)"
            )

        container = containers[container_index]
        previous = container.image
        container.image = image
        updated = self._replace(namespace, deploy)
        logger.info(
            f"Updated deployment {name} in {namespace}: container {container.name} "
            f"image {previous} -> {image}"
        )
        return to_workload(updated)

    @traced("delete_deployment")
    def delete_deployment(self, namespace: str, name: str) -> None:
        """
        Delete a deployment.

        Returns once the control plane accepts the deletion; managed pods
        may still be terminating.
        """
        with translate_api_errors("delete", "deployment", namespace, name):
            self.cluster.apps_api.delete_namespaced_deployment(
                name=name,
                namespace=namespace,
                body=client.V1DeleteOptions(propagation_policy=self.delete_propagation),
                **self.cluster.request_options(),
            )
        logger.info(f"Deleted deployment {name} in {namespace}")
