"""
Kubernetes control-plane session.

One ``ClusterClient`` is built per process and injected into every service.
It holds an isolated ``ApiClient`` so that several clients with different
kubeconfigs can coexist without touching the library's global configuration.
"""

import logging
import os
from typing import Any, Callable, Optional

from kubernetes import client, config

from ..config import KubernetesSettings
from ..exceptions import ClusterConnectionError

logger = logging.getLogger(__name__)


def _incluster_api_client() -> client.ApiClient:
    configuration = client.Configuration()
    config.load_incluster_config(client_configuration=configuration)
    return client.ApiClient(configuration)


def _kubeconfig_api_client(path: Optional[str], context: Optional[str]) -> client.ApiClient:
    return config.new_client_from_config(
        config_file=path,
        context=context,
        persist_config=False,
    )


def _kubeconfig_candidates(settings: KubernetesSettings) -> list[str]:
    """Kubeconfig paths to try, in order, without duplicates."""
    candidates = []
    env_kubeconfig = os.getenv("KUBECONFIG", "")
    if env_kubeconfig:
        candidates.extend(env_kubeconfig.split(os.pathsep))
    candidates.extend(settings.extra_kubeconfig_paths or [])
    candidates.append(os.path.expanduser("~/.kube/config"))

    seen = set()
    unique_candidates = []
    for path in candidates:
        if path and path not in seen:
            seen.add(path)
            unique_candidates.append(path)
    return unique_candidates


class ClusterClient:
    """Long-lived handle to the Kubernetes API."""

    def __init__(
        self,
        api_client: client.ApiClient,
        request_timeout: float = 30.0,
        page_size: int = 500,
        source: str = "api client",
    ):
        self.api_client = api_client
        self.core_api = client.CoreV1Api(api_client)
        self.apps_api = client.AppsV1Api(api_client)
        self.version_api = client.VersionApi(api_client)
        self.request_timeout = request_timeout
        self.page_size = page_size
        self.source = source

    @classmethod
    def connect(cls, settings: KubernetesSettings) -> "ClusterClient":
        """
        Build a client from the first configuration source that answers.

        Sources are tried in this order:

        1. ``in_cluster`` forces the pod service account and nothing else.
        2. An explicit ``kubeconfig_path`` (with ``context``) is the only
           kubeconfig tried, so a broken explicit config never falls back to
           some other cluster.
        3. Otherwise the auto-discovered kubeconfig candidates, then the
           in-cluster config.

        Each source is probed with a ``/version`` request. Raises
        ``ClusterConnectionError`` listing every failed attempt.
        """
        attempts: list[tuple[str, Callable[[], client.ApiClient]]] = []

        if settings.in_cluster:
            attempts.append(("in-cluster", _incluster_api_client))
        elif settings.kubeconfig_path:
            attempts.append((
                f"kubeconfig={settings.kubeconfig_path}, context={settings.context or 'default'}",
                lambda: _kubeconfig_api_client(settings.kubeconfig_path, settings.context),
            ))
        else:
            if settings.auto_discover:
                for path in _kubeconfig_candidates(settings):
                    attempts.append((
                        f"kubeconfig={path}, context={settings.context or 'default'}",
                        lambda p=path: _kubeconfig_api_client(p, settings.context),
                    ))
            else:
                attempts.append((
                    "default kubeconfig",
                    lambda: _kubeconfig_api_client(None, settings.context),
                ))
            attempts.append(("in-cluster", _incluster_api_client))

        errors: list[str] = []
        for desc, loader in attempts:
            api_client = None
            try:
                api_client = loader()
                cluster = cls(
                    api_client,
                    request_timeout=settings.request_timeout,
                    page_size=settings.page_size,
                    source=desc,
                )
                version = cluster.version_api.get_code(**cluster.request_options())
            except Exception as e:  # noqa: BLE001
                logger.debug("Kube connect attempt failed: %s: %s", desc, e, exc_info=True)
                errors.append(f"{desc}: {e}")
                if api_client is not None:
                    api_client.close()
                continue
            logger.info(
                "Connected to Kubernetes %s via %s", version.git_version, desc
            )
            return cluster

        diagnostics = "; ".join(errors) if errors else "no configuration source available"
        logger.error("Failed to connect to Kubernetes. Attempts: %s", diagnostics)
        raise ClusterConnectionError(f"Kubernetes connection failed: {diagnostics}")

    def request_options(self) -> dict[str, Any]:
        """Keyword arguments applied to every API call."""
        return {"_request_timeout": self.request_timeout}

    def close(self) -> None:
        """Release the connection pool."""
        self.api_client.close()

    def __enter__(self) -> "ClusterClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ClusterClient(source={self.source!r})"
