import pytest

from kube_workloads.demo import build_demo_deployment, build_demo_service, run_demo
from kube_workloads.exceptions import AlreadyExistsError
from kube_workloads.models import PullPolicy, ServiceType
from kube_workloads.services import DeploymentReader


def test_demo_deployment_defaults(demo_settings):
    spec = build_demo_deployment(demo_settings)

    assert spec.name == "test-golang"
    assert spec.namespace == "web"
    assert spec.replicas == 2
    assert spec.selector == {"app": "test-golang"}
    container = spec.containers[0]
    assert container.name == "test"
    assert container.image == "nginx:1.16.1"
    assert container.image_pull_policy == PullPolicy.IF_NOT_PRESENT
    assert container.ports[0].name == "http"
    assert container.ports[0].container_port == 80


def test_demo_service_defaults(demo_settings):
    spec = build_demo_service(demo_settings)

    assert spec.name == "go-nginx-svc"
    assert spec.type == ServiceType.NODE_PORT
    assert spec.labels == {"svc": "go-nginx"}
    assert spec.selector == {"app": "test-golang"}
    assert spec.ports[0].port == 80
    assert spec.node_ports == [6110]


def test_end_to_end_scenario(cluster, demo_settings):
    report = run_demo(cluster, demo_settings)

    assert report.created.replicas == 2
    assert report.created.images == ["nginx:1.16.1"]
    assert report.scaled.replicas == 3
    assert report.updated.images == ["nginx:1.18.0"]
    assert report.updated.replicas == 3
    assert report.service.name == "go-nginx-svc"
    assert report.service.selector == {"app": "test-golang"}
    assert report.service.node_ports == [6110]

    stored = DeploymentReader(cluster).get_deployment("web", "test-golang")
    assert stored.replicas == 3
    assert stored.images == ["nginx:1.18.0"]


def test_demo_uses_configured_identities(cluster, demo_settings):
    custom = demo_settings.model_copy(
        update={"namespace": "staging", "deployment_name": "shop", "app_label": "shop"}
    )

    report = run_demo(cluster, custom)

    assert report.updated.namespace == "staging"
    assert report.updated.name == "shop"
    assert report.service.selector == {"app": "shop"}


def test_demo_rerun_stops_at_create(plane, cluster, demo_settings):
    run_demo(cluster, demo_settings)
    calls_before = len(plane.calls)

    with pytest.raises(AlreadyExistsError):
        run_demo(cluster, demo_settings)

    assert len(plane.calls) == calls_before + 1
