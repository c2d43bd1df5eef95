"""
Error taxonomy for control-plane operations.

Services translate ``ApiException`` and transport failures into these types
at the call boundary and re-raise them; nothing is handled locally.
"""

import json
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

logger = logging.getLogger(__name__)


class ClusterError(Exception):
    """Base class for all cluster client errors."""


class ClusterConnectionError(ClusterError):
    """A session to the control plane could not be established."""


class APIError(ClusterError):
    """The control plane rejected a request or the transport failed."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        reason: Optional[str] = None,
        action: Optional[str] = None,
        kind: Optional[str] = None,
        namespace: Optional[str] = None,
        name: Optional[str] = None,
    ):
        super().__init__(message)
        self.status = status
        self.reason = reason
        self.action = action
        self.kind = kind
        self.namespace = namespace
        self.name = name


class NotFoundError(APIError):
    """The target resource does not exist."""


class AlreadyExistsError(APIError):
    """A resource with the same namespace and name already exists."""


class ConflictError(APIError):
    """An update was rejected because the resource changed since it was read."""


class ContainerIndexError(ClusterError, IndexError):
    """A container index is outside the pod template's container list."""


def _api_message(exc: ApiException) -> str:
    """Pull the human-readable message out of a Kubernetes Status body."""
    if exc.body:
        try:
            payload = json.loads(exc.body)
        except (TypeError, ValueError):
            return str(exc.body)
        if isinstance(payload, dict) and payload.get("message"):
            return payload["message"]
    return exc.reason or "unknown error"


def _describe(kind: str, namespace: Optional[str], name: Optional[str]) -> str:
    if name and namespace:
        return f"{kind} {namespace}/{name}"
    if name:
        return f"{kind} {name}"
    if namespace:
        return f"{kind} in {namespace}"
    return kind


@contextmanager
def translate_api_errors(
    action: str,
    kind: str,
    namespace: Optional[str] = None,
    name: Optional[str] = None,
) -> Iterator[None]:
    """Translate client exceptions raised inside the block into ``APIError`` types."""
    target = _describe(kind, namespace, name)
    context = {
        "action": action,
        "kind": kind,
        "namespace": namespace,
        "name": name,
    }
    try:
        yield
    except ApiException as e:
        message = f"Failed to {action} {target}: {_api_message(e)}"
        if e.status == 404:
            error_cls = NotFoundError
        elif e.status == 409 and action == "create":
            error_cls = AlreadyExistsError
        elif e.status == 409:
            error_cls = ConflictError
        else:
            error_cls = APIError
        logger.error(message)
        raise error_cls(message, status=e.status, reason=e.reason, **context) from e
    except HTTPError as e:
        message = f"Failed to {action} {target}: {e}"
        logger.error(message)
        raise APIError(message, **context) from e
