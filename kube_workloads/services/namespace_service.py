"""Namespace discovery."""

import logging
from typing import Optional

from ..exceptions import translate_api_errors
from ..telemetry import traced
from .cluster_client import ClusterClient

logger = logging.getLogger(__name__)


def continue_token(response) -> Optional[str]:
    """Continuation token of a list response, or None on the last page."""
    metadata = getattr(response, "metadata", None)
    return getattr(metadata, "_continue", None) or None


class NamespaceService:
    """Service for namespace operations."""

    def __init__(self, cluster: ClusterClient):
        self.cluster = cluster

    @traced("list_namespaces")
    def list_namespaces(self) -> list[str]:
        """List every namespace visible to the client, following pagination."""
        names: list[str] = []
        token = None
        while True:
            with translate_api_errors("list", "namespaces"):
                namespaces = self.cluster.core_api.list_namespace(
                    limit=self.cluster.page_size,
                    _continue=token,
                    **self.cluster.request_options(),
                )
            names.extend(ns.metadata.name for ns in namespaces.items)
            token = continue_token(namespaces)
            if not token:
                break

        logger.debug("Found %d namespaces", len(names))
        return names
