import os
from unittest.mock import MagicMock

import pytest
from kubernetes.config.config_exception import ConfigException

from kube_workloads.config import KubernetesSettings
from kube_workloads.exceptions import ClusterConnectionError
from kube_workloads.services import ClusterClient
from kube_workloads.services import cluster_client as cluster_client_module


class FakeVersionApi:
    """Answers /version unless the api client is marked unreachable."""

    def __init__(self, api_client):
        self.api_client = api_client

    def get_code(self, _request_timeout=None):
        if getattr(self.api_client, "unreachable", False):
            raise OSError("connection refused")
        return MagicMock(git_version="v1.29.0+k3s1")


@pytest.fixture
def loaders(monkeypatch):
    """Replace the config loaders and record which sources were tried."""
    tried = []
    reachable = {"in-cluster": False}

    def kubeconfig(path, context):
        tried.append(("kubeconfig", path, context))
        if path and ("missing" in path or path.startswith("/nonexistent-home")):
            raise ConfigException(f"Invalid kube-config file: {path}")
        api_client = MagicMock()
        api_client.unreachable = bool(path and "down" in path)
        return api_client

    def incluster():
        tried.append(("in-cluster",))
        if not reachable["in-cluster"]:
            raise ConfigException("Service host/port is not set.")
        api_client = MagicMock()
        api_client.unreachable = False
        return api_client

    monkeypatch.setattr(cluster_client_module, "_kubeconfig_api_client", kubeconfig)
    monkeypatch.setattr(cluster_client_module, "_incluster_api_client", incluster)
    monkeypatch.setattr(cluster_client_module.client, "VersionApi", FakeVersionApi)
    monkeypatch.delenv("KUBECONFIG", raising=False)
    monkeypatch.setenv("HOME", "/nonexistent-home")
    return tried, reachable


def test_connect_with_explicit_kubeconfig(loaders):
    tried, _ = loaders
    settings = KubernetesSettings(
        kubeconfig_path="etc/config", context="k3s", request_timeout=12.5, page_size=50
    )

    cluster = ClusterClient.connect(settings)

    assert tried == [("kubeconfig", "etc/config", "k3s")]
    assert cluster.request_timeout == 12.5
    assert cluster.page_size == 50
    assert cluster.request_options() == {"_request_timeout": 12.5}
    assert "etc/config" in cluster.source


def test_explicit_kubeconfig_failure_does_not_fall_back(loaders):
    tried, reachable = loaders
    reachable["in-cluster"] = True

    with pytest.raises(ClusterConnectionError, match="missing/config"):
        ClusterClient.connect(KubernetesSettings(kubeconfig_path="missing/config"))

    assert tried == [("kubeconfig", "missing/config", None)]


def test_auto_discovery_skips_unreachable_clusters(loaders, monkeypatch):
    tried, _ = loaders
    monkeypatch.setenv("KUBECONFIG", os.pathsep.join(["/etc/down.yaml", "/etc/up.yaml"]))

    cluster = ClusterClient.connect(KubernetesSettings())

    assert [t[1] for t in tried] == ["/etc/down.yaml", "/etc/up.yaml"]
    assert "/etc/up.yaml" in cluster.source


def test_unreachable_attempt_closes_its_api_client(loaders, monkeypatch):
    created = []
    original = cluster_client_module._kubeconfig_api_client

    def recording(path, context):
        api_client = original(path, context)
        created.append(api_client)
        return api_client

    monkeypatch.setattr(cluster_client_module, "_kubeconfig_api_client", recording)
    monkeypatch.setenv("KUBECONFIG", "/etc/down.yaml")

    with pytest.raises(ClusterConnectionError):
        ClusterClient.connect(KubernetesSettings())

    created[0].close.assert_called_once()


def test_all_sources_failing_reports_every_attempt(loaders):
    tried, _ = loaders
    settings = KubernetesSettings(extra_kubeconfig_paths=["/srv/missing.yaml"])

    with pytest.raises(ClusterConnectionError) as exc_info:
        ClusterClient.connect(settings)

    message = str(exc_info.value)
    assert "/srv/missing.yaml" in message
    assert "/nonexistent-home/.kube/config" in message
    assert "in-cluster" in message
    assert tried[-1] == ("in-cluster",)


def test_in_cluster_only(loaders):
    tried, reachable = loaders
    reachable["in-cluster"] = True

    cluster = ClusterClient.connect(KubernetesSettings(in_cluster=True))

    assert tried == [("in-cluster",)]
    assert cluster.source == "in-cluster"


def test_context_manager_closes_api_client():
    api_client = MagicMock()

    with ClusterClient(api_client) as cluster:
        assert cluster.api_client is api_client

    api_client.close.assert_called_once()
