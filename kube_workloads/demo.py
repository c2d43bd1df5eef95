"""
Example resources and the end-to-end walkthrough.

Creates a small nginx deployment, scales it once, moves it to a new image,
and exposes it through a NodePort service. All identities come from
``DemoSettings``.
"""

import logging

from pydantic import BaseModel

from .config import DemoSettings
from .models import (
    ContainerPort,
    ContainerSpec,
    ExposureSpec,
    ServicePortSpec,
    WorkloadSpec,
)
from .services import (
    ClusterClient,
    DeploymentWriter,
    ExposureService,
)

logger = logging.getLogger(__name__)


class DemoReport(BaseModel):
    """State of the demo resources after each step."""

    created: WorkloadSpec
    scaled: WorkloadSpec
    updated: WorkloadSpec
    service: ExposureSpec


def build_demo_deployment(demo: DemoSettings) -> WorkloadSpec:
    labels = {"app": demo.app_label}
    return WorkloadSpec(
        name=demo.deployment_name,
        namespace=demo.namespace,
        replicas=demo.replicas,
        labels=labels,
        selector=labels,
        template_labels=labels,
        containers=[
            ContainerSpec(
                name=demo.container_name,
                image=demo.image,
                image_pull_policy=demo.pull_policy,
                ports=[
                    ContainerPort(
                        name=demo.port_name,
                        container_port=demo.container_port,
                        protocol="TCP",
                    )
                ],
            )
        ],
    )


def build_demo_service(demo: DemoSettings) -> ExposureSpec:
    return ExposureSpec(
        name=demo.service_name,
        namespace=demo.namespace,
        labels={"svc": demo.service_label},
        selector={"app": demo.app_label},
        type=demo.service_type,
        ports=[
            ServicePortSpec(
                name=demo.port_name,
                protocol="TCP",
                port=demo.service_port,
                node_port=demo.node_port,
            )
        ],
    )


def run_demo(
    cluster: ClusterClient,
    demo: DemoSettings,
) -> DemoReport:
    """Run create, scale, image update, and expose against the cluster.

    Stops at the first failing step; earlier steps are not rolled back.
    """
    writer = DeploymentWriter(cluster)
    exposures = ExposureService(cluster)

    created = writer.create_deployment(demo.namespace, build_demo_deployment(demo))
    logger.info(
        f"Demo deployment {created.name} created with {created.replicas} replicas"
    )

    scaled = writer.scale_deployment(demo.namespace, demo.deployment_name)
    updated = writer.set_container_image(
        demo.namespace, demo.deployment_name, 0, demo.updated_image
    )
    service = exposures.create_service(demo.namespace, build_demo_service(demo))

    return DemoReport(created=created, scaled=scaled, updated=updated, service=service)
