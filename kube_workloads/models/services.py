"""Service-related Pydantic models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from .deployments import Protocol


class ServiceType(str, Enum):
    """How a service is exposed."""

    CLUSTER_IP = "ClusterIP"
    NODE_PORT = "NodePort"
    LOAD_BALANCER = "LoadBalancer"
    # Read only: accepted when listing, rejected by create_service
    EXTERNAL_NAME = "ExternalName"


class ServicePortSpec(BaseModel):
    """A port mapping of a service."""

    name: Optional[str] = Field(default=None, description="Port name")
    protocol: Protocol = Field(default=Protocol.TCP, description="Transport protocol")
    port: int = Field(ge=1, le=65535, description="Service port")
    target_port: Optional[int] = Field(
        default=None,
        ge=1,
        le=65535,
        description="Pod port. Defaults to the service port.",
    )
    node_port: Optional[int] = Field(
        default=None,
        ge=1,
        le=65535,
        description="Port opened on every node (NodePort and LoadBalancer only)",
    )


class ExposureSpec(BaseModel):
    """A Service routing traffic to pods matching a label selector."""

    name: str = Field(description="Service name")
    namespace: Optional[str] = Field(default=None, description="Service namespace")
    labels: dict[str, str] = Field(default_factory=dict, description="Service labels")
    selector: dict[str, str] = Field(default_factory=dict, description="Pod selector")
    type: ServiceType = Field(default=ServiceType.CLUSTER_IP, description="Service type")
    ports: list[ServicePortSpec] = Field(default_factory=list, description="Port mappings")

    # Populated from the control plane on reads
    cluster_ip: Optional[str] = Field(default=None, description="Cluster IP")
    created_at: Optional[datetime] = Field(default=None, description="Creation timestamp")

    @model_validator(mode="after")
    def _check_node_ports(self) -> "ExposureSpec":
        if self.type not in (ServiceType.NODE_PORT, ServiceType.LOAD_BALANCER):
            pinned = [p.node_port for p in self.ports if p.node_port is not None]
            if pinned:
                raise ValueError(
                    f"node ports {pinned} require service type NodePort or LoadBalancer"
                )
        return self

    @property
    def node_ports(self) -> list[Optional[int]]:
        """Node port of each mapping, in order."""
        return [p.node_port for p in self.ports]
