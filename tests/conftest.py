"""In-memory control plane for exercising the services without a cluster."""

import copy
import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from kubernetes import client
from kubernetes.client.exceptions import ApiException

from kube_workloads.config import DemoSettings
from kube_workloads.services import ClusterClient


def api_error(status: int, reason: str, message: str) -> ApiException:
    exc = ApiException(status=status, reason=reason)
    exc.body = json.dumps({"kind": "Status", "reason": reason, "message": message})
    return exc


def _page(items: list, limit, token):
    start = int(token) if token else 0
    end = start + limit if limit else len(items)
    next_token = str(end) if end < len(items) else None
    return items[start:end], client.V1ListMeta(_continue=next_token)


class FakeControlPlane:
    """Stores deployments and services keyed by (namespace, name)."""

    def __init__(self, namespaces=("default", "kube-system", "web")):
        self.namespaces = list(namespaces)
        self.deployments: dict[tuple[str, str], client.V1Deployment] = {}
        self.services: dict[tuple[str, str], client.V1Service] = {}
        self.failing_namespaces: set[str] = set()
        self.calls: list[tuple[str, ...]] = []
        self._version = 0

    def next_version(self) -> str:
        self._version += 1
        return str(self._version)

    def _check_namespace(self, namespace: str) -> None:
        if namespace in self.failing_namespaces:
            raise api_error(500, "InternalError", f"etcd unavailable for {namespace}")

    def stored(self, namespace: str, name: str) -> client.V1Deployment:
        return self.deployments[(namespace, name)]

    def add_deployment(self, deploy: client.V1Deployment) -> None:
        namespace = deploy.metadata.namespace
        if namespace not in self.namespaces:
            self.namespaces.append(namespace)
        deploy.metadata.resource_version = self.next_version()
        self.deployments[(namespace, deploy.metadata.name)] = copy.deepcopy(deploy)


class FakeCoreApi:
    def __init__(self, plane: FakeControlPlane):
        self.plane = plane

    def list_namespace(self, limit=None, _continue=None, _request_timeout=None):
        self.plane.calls.append(("list_namespace",))
        items = [
            client.V1Namespace(metadata=client.V1ObjectMeta(name=name))
            for name in self.plane.namespaces
        ]
        page, meta = _page(items, limit, _continue)
        return client.V1NamespaceList(items=page, metadata=meta)

    def list_namespaced_service(self, namespace, limit=None, _continue=None, _request_timeout=None):
        self.plane.calls.append(("list_namespaced_service", namespace))
        self.plane._check_namespace(namespace)
        items = [
            copy.deepcopy(svc)
            for (ns, _), svc in self.plane.services.items()
            if ns == namespace
        ]
        page, meta = _page(items, limit, _continue)
        return client.V1ServiceList(items=page, metadata=meta)

    def create_namespaced_service(self, namespace, body, _request_timeout=None):
        self.plane.calls.append(("create_namespaced_service", namespace, body.metadata.name))
        key = (namespace, body.metadata.name)
        if key in self.plane.services:
            raise api_error(
                409, "AlreadyExists", f'services "{body.metadata.name}" already exists'
            )
        svc = copy.deepcopy(body)
        svc.metadata.namespace = namespace
        svc.metadata.resource_version = self.plane.next_version()
        svc.metadata.creation_timestamp = datetime.now(timezone.utc)
        svc.spec.cluster_ip = "10.43.0.10"
        for port in svc.spec.ports:
            if port.target_port is None:
                port.target_port = port.port
        self.plane.services[key] = svc
        return copy.deepcopy(svc)


class FakeAppsApi:
    def __init__(self, plane: FakeControlPlane):
        self.plane = plane

    def _missing(self, namespace, name):
        return api_error(404, "NotFound", f'deployments.apps "{name}" not found')

    def list_namespaced_deployment(self, namespace, limit=None, _continue=None, _request_timeout=None):
        self.plane.calls.append(("list_namespaced_deployment", namespace))
        self.plane._check_namespace(namespace)
        items = [
            copy.deepcopy(deploy)
            for (ns, _), deploy in self.plane.deployments.items()
            if ns == namespace
        ]
        page, meta = _page(items, limit, _continue)
        return client.V1DeploymentList(items=page, metadata=meta)

    def read_namespaced_deployment(self, name, namespace, _request_timeout=None):
        self.plane.calls.append(("read_namespaced_deployment", namespace, name))
        try:
            return copy.deepcopy(self.plane.deployments[(namespace, name)])
        except KeyError:
            raise self._missing(namespace, name) from None

    def create_namespaced_deployment(self, namespace, body, _request_timeout=None):
        self.plane.calls.append(("create_namespaced_deployment", namespace, body.metadata.name))
        key = (namespace, body.metadata.name)
        if key in self.plane.deployments:
            raise api_error(
                409,
                "AlreadyExists",
                f'deployments.apps "{body.metadata.name}" already exists',
            )
        deploy = copy.deepcopy(body)
        deploy.metadata.namespace = namespace
        deploy.metadata.resource_version = self.plane.next_version()
        deploy.metadata.creation_timestamp = datetime.now(timezone.utc)
        deploy.status = client.V1DeploymentStatus(replicas=deploy.spec.replicas)
        self.plane.deployments[key] = deploy
        return copy.deepcopy(deploy)

    def replace_namespaced_deployment(self, name, namespace, body, _request_timeout=None):
        self.plane.calls.append(("replace_namespaced_deployment", namespace, name))
        key = (namespace, name)
        if key not in self.plane.deployments:
            raise self._missing(namespace, name)
        current = self.plane.deployments[key]
        if body.metadata.resource_version != current.metadata.resource_version:
            raise api_error(
                409,
                "Conflict",
                "the object has been modified; please apply your changes to the latest version",
            )
        deploy = copy.deepcopy(body)
        deploy.metadata.resource_version = self.plane.next_version()
        self.plane.deployments[key] = deploy
        return copy.deepcopy(deploy)

    def delete_namespaced_deployment(self, name, namespace, body=None, _request_timeout=None):
        self.plane.calls.append(("delete_namespaced_deployment", namespace, name))
        try:
            del self.plane.deployments[(namespace, name)]
        except KeyError:
            raise self._missing(namespace, name) from None
        return client.V1Status(status="Success")


def make_deployment(
    namespace: str,
    name: str,
    replicas=1,
    images=("nginx:1.16.1",),
) -> client.V1Deployment:
    labels = {"app": name}
    containers = [
        client.V1Container(
            name=f"c{i}",
            image=image,
            image_pull_policy="IfNotPresent",
            ports=[client.V1ContainerPort(name="http", container_port=80 + i, protocol="TCP")],
        )
        for i, image in enumerate(images)
    ]
    return client.V1Deployment(
        metadata=client.V1ObjectMeta(name=name, namespace=namespace, labels=labels),
        spec=client.V1DeploymentSpec(
            replicas=replicas,
            selector=client.V1LabelSelector(match_labels=labels),
            template=client.V1PodTemplateSpec(
                metadata=client.V1ObjectMeta(labels=labels),
                spec=client.V1PodSpec(containers=containers),
            ),
        ),
    )


@pytest.fixture
def plane():
    return FakeControlPlane()


@pytest.fixture
def cluster(plane):
    cluster = ClusterClient(MagicMock(), request_timeout=5.0, page_size=2, source="fake")
    cluster.core_api = FakeCoreApi(plane)
    cluster.apps_api = FakeAppsApi(plane)
    return cluster


@pytest.fixture
def demo_settings():
    return DemoSettings()
