"""Deployment-related Pydantic models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class PullPolicy(str, Enum):
    """Container image pull policy."""

    ALWAYS = "Always"
    IF_NOT_PRESENT = "IfNotPresent"
    NEVER = "Never"


class Protocol(str, Enum):
    """Transport protocol of a port."""

    TCP = "TCP"
    UDP = "UDP"
    SCTP = "SCTP"


class ContainerPort(BaseModel):
    """A named port exposed by a container."""

    name: Optional[str] = Field(default=None, description="Port name")
    container_port: int = Field(ge=1, le=65535, description="Port number inside the container")
    protocol: Protocol = Field(default=Protocol.TCP, description="Transport protocol")


class ContainerSpec(BaseModel):
    """A container in a pod template."""

    name: str = Field(description="Container name, unique within the pod template")
    image: str = Field(description="Image reference (repository:tag)")
    image_pull_policy: PullPolicy = Field(
        default=PullPolicy.IF_NOT_PRESENT,
        description="Image pull policy",
    )
    ports: list[ContainerPort] = Field(default_factory=list, description="Container ports")


class WorkloadSpec(BaseModel):
    """A replicated workload (Deployment) as submitted to or read from the cluster."""

    name: str = Field(description="Deployment name")
    namespace: Optional[str] = Field(default=None, description="Deployment namespace")
    replicas: int = Field(default=1, ge=0, description="Desired replicas")
    labels: dict[str, str] = Field(default_factory=dict, description="Deployment labels")
    selector: dict[str, str] = Field(default_factory=dict, description="Pod selector match labels")
    template_labels: dict[str, str] = Field(
        default_factory=dict,
        description="Pod template labels. Defaults to the selector.",
    )
    containers: list[ContainerSpec] = Field(min_length=1, description="Pod template containers")

    # Populated from the control plane on reads
    ready_replicas: int = Field(default=0, description="Ready replicas")
    available_replicas: int = Field(default=0, description="Available replicas")
    resource_version: Optional[str] = Field(default=None, description="Resource version")
    created_at: Optional[datetime] = Field(default=None, description="Creation timestamp")

    @model_validator(mode="after")
    def _check_pod_template(self) -> "WorkloadSpec":
        if not self.template_labels:
            self.template_labels = dict(self.selector)

        unmatched = {
            key: value
            for key, value in self.selector.items()
            if self.template_labels.get(key) != value
        }
        if unmatched:
            raise ValueError(
                f"selector labels {unmatched} are not present in the pod template labels"
            )

        names = [c.name for c in self.containers]
        if len(names) != len(set(names)):
            raise ValueError(f"container names must be unique, got {names}")
        return self

    @property
    def images(self) -> list[str]:
        """Container images in pod template order."""
        return [c.image for c in self.containers]


class ImageUpdateRequest(BaseModel):
    """Request to replace one container's image."""

    image: str = Field(min_length=1, description="New image reference")
