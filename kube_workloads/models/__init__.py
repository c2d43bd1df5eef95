"""Pydantic models for cluster resources."""

from .deployments import (
    ContainerPort,
    ContainerSpec,
    ImageUpdateRequest,
    Protocol,
    PullPolicy,
    WorkloadSpec,
)
from .services import (
    ExposureSpec,
    ServicePortSpec,
    ServiceType,
)

__all__ = [
    "ContainerPort",
    "ContainerSpec",
    "ImageUpdateRequest",
    "Protocol",
    "PullPolicy",
    "WorkloadSpec",
    "ExposureSpec",
    "ServicePortSpec",
    "ServiceType",
]
