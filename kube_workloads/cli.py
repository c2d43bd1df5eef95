#!/usr/bin/env python3
"""
Command-line interface for deployment and service lifecycle operations.

Every command connects once, runs one operation, and logs a single success
line. Any cluster error is logged and the process exits with status 1.

Examples:
    kube-workloads namespaces
    kube-workloads deployments -A
    kube-workloads create test-golang -n web --image nginx:1.16.1 --replicas 2
    kube-workloads scale web test-golang
    kube-workloads set-image web test-golang nginx:1.18.0
    kube-workloads expose go-nginx-svc -n web --selector app=test-golang --node-port 6110
    kube-workloads demo
"""

import argparse
import logging
import sys
from typing import Optional

from pydantic import ValidationError

from .config import DemoSettings, Settings, get_settings
from .demo import run_demo
from .exceptions import ClusterError
from .models import (
    ContainerPort,
    ContainerSpec,
    ExposureSpec,
    PullPolicy,
    ServicePortSpec,
    ServiceType,
    WorkloadSpec,
)
from .services import (
    ClusterClient,
    DeploymentReader,
    DeploymentWriter,
    ExposureService,
    NamespaceService,
)

logger = logging.getLogger("kube_workloads.cli")


def label(value: str) -> tuple[str, str]:
    """Parse a ``key=value`` label argument."""
    key, sep, val = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected key=value, got {value!r}")
    return key, val


def format_workload(namespace: str, workload: WorkloadSpec) -> str:
    images = ",".join(workload.images)
    return (
        f"namespace:{namespace} name:{workload.name} "
        f"replicas:{workload.ready_replicas}/{workload.replicas} images:{images}"
    )


def format_service(namespace: str, svc: ExposureSpec) -> str:
    lines = [
        "-------------",
        f"NameSpace:{namespace}",
        f"SvcName:{svc.name}",
        f"Type:{svc.type.value}",
        f"ClusterIP:{svc.cluster_ip}",
        f"Labels:{svc.labels}",
    ]
    for port in svc.ports:
        lines.append(
            f"Protocol:{port.protocol.value} Port:{port.port} NodePort:{port.node_port}"
        )
    return "\n".join(lines)


def cmd_namespaces(cluster: ClusterClient, args, settings: Settings) -> None:
    names = NamespaceService(cluster).list_namespaces()
    for name in names:
        print(name)
    logger.info(f"Listed {len(names)} namespaces")


def cmd_deployments(cluster: ClusterClient, args, settings: Settings) -> None:
    reader = DeploymentReader(cluster)
    if args.all_namespaces:
        rows = reader.list_deployments_all_namespaces()
    else:
        rows = [(args.namespace, w) for w in reader.list_deployments(args.namespace)]
    for namespace, workload in rows:
        print(format_workload(namespace, workload))
    logger.info(f"Listed {len(rows)} deployments")


def cmd_get(cluster: ClusterClient, args, settings: Settings) -> None:
    workload = DeploymentReader(cluster).get_deployment(args.namespace, args.name)
    print(workload.model_dump_json(indent=2))


def cmd_create(cluster: ClusterClient, args, settings: Settings) -> None:
    labels = dict(args.label) if args.label else {"app": args.name}
    spec = WorkloadSpec(
        name=args.name,
        replicas=args.replicas,
        labels=labels,
        selector=labels,
        template_labels=labels,
        containers=[
            ContainerSpec(
                name=args.container_name,
                image=args.image,
                image_pull_policy=args.pull_policy,
                ports=[ContainerPort(name=args.port_name, container_port=args.port)],
            )
        ],
    )
    created = DeploymentWriter(cluster).create_deployment(args.namespace, spec)
    logger.info(
        f"Deployment {created.name} created in {args.namespace} "
        f"with {created.replicas} replicas"
    )


def cmd_scale(cluster: ClusterClient, args, settings: Settings) -> None:
    writer = DeploymentWriter(cluster)
    workload = writer.scale_deployment(args.namespace, args.name)
    logger.info(f"Deployment {workload.name} replicas={workload.replicas} update success")


def cmd_set_image(cluster: ClusterClient, args, settings: Settings) -> None:
    writer = DeploymentWriter(cluster)
    workload = writer.set_container_image(args.namespace, args.name, args.index, args.image)
    logger.info(f"Deployment {workload.name} image update success")


def cmd_delete(cluster: ClusterClient, args, settings: Settings) -> None:
    writer = DeploymentWriter(cluster, settings.kubernetes.delete_propagation)
    writer.delete_deployment(args.namespace, args.name)
    logger.info(f"Deployment {args.namespace}/{args.name} delete success")


def cmd_expose(cluster: ClusterClient, args, settings: Settings) -> None:
    node_port = args.node_port
    if node_port is None and args.type == ServiceType.NODE_PORT.value:
        node_port = settings.demo.node_port
    spec = ExposureSpec(
        name=args.name,
        labels=dict(args.label) if args.label else {"svc": settings.demo.service_label},
        selector=dict(args.selector) if args.selector else {"app": settings.demo.app_label},
        type=args.type,
        ports=[
            ServicePortSpec(
                name=args.port_name,
                port=args.port,
                target_port=args.target_port,
                node_port=node_port or None,
            )
        ],
    )
    created = ExposureService(cluster).create_service(args.namespace, spec)
    logger.info(f"Service {created.name} create success")


def cmd_services(cluster: ClusterClient, args, settings: Settings) -> None:
    exposures = ExposureService(cluster)
    if args.all_namespaces:
        rows = exposures.list_services_all_namespaces()
    else:
        rows = [(args.namespace, s) for s in exposures.list_services(args.namespace)]
    for namespace, svc in rows:
        print(format_service(namespace, svc))
    logger.info(f"Listed {len(rows)} services")


def cmd_demo(cluster: ClusterClient, args, settings: Settings) -> None:
    report = run_demo(cluster, settings.demo)
    logger.info(
        f"Demo complete: {report.updated.name} replicas={report.updated.replicas} "
        f"images={report.updated.images}, service {report.service.name} "
        f"node ports={report.service.node_ports}"
    )


def _add_namespace_scope(parser: argparse.ArgumentParser, demo: DemoSettings) -> None:
    scope = parser.add_mutually_exclusive_group()
    scope.add_argument("-n", "--namespace", default=demo.namespace, help="Namespace")
    scope.add_argument(
        "-A", "--all-namespaces", action="store_true", help="List across all namespaces"
    )


def build_parser(demo: DemoSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kube-workloads",
        description="Manage Kubernetes deployments and services",
    )
    parser.add_argument("--kubeconfig", help="Path to kubeconfig file")
    parser.add_argument("--context", help="Kubeconfig context")
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds")
    parser.add_argument("--log-level", default=None, help="Logging level (default: INFO)")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("namespaces", help="List namespaces")
    p.set_defaults(handler=cmd_namespaces)

    p = sub.add_parser("deployments", help="List deployments")
    _add_namespace_scope(p, demo)
    p.set_defaults(handler=cmd_deployments)

    p = sub.add_parser("get", help="Show one deployment")
    p.add_argument("namespace")
    p.add_argument("name")
    p.set_defaults(handler=cmd_get)

    p = sub.add_parser("create", help="Create a single-container deployment")
    p.add_argument("name", nargs="?", default=demo.deployment_name)
    p.add_argument("-n", "--namespace", default=demo.namespace)
    p.add_argument("--image", default=demo.image)
    p.add_argument("--replicas", type=int, default=demo.replicas)
    p.add_argument("--container-name", default=demo.container_name)
    p.add_argument("--port", type=int, default=demo.container_port)
    p.add_argument("--port-name", default=demo.port_name)
    p.add_argument(
        "--pull-policy",
        default=demo.pull_policy,
        choices=[policy.value for policy in PullPolicy],
    )
    p.add_argument(
        "--label", type=label, action="append", help="Label key=value (repeatable)"
    )
    p.set_defaults(handler=cmd_create)

    p = sub.add_parser("scale", help="Apply one scaling step to a deployment")
    p.add_argument("namespace")
    p.add_argument("name")
    p.set_defaults(handler=cmd_scale)

    p = sub.add_parser("set-image", help="Replace a container image")
    p.add_argument("namespace")
    p.add_argument("name")
    p.add_argument("image")
    p.add_argument("--index", type=int, default=0, help="Container index (default: 0)")
    p.set_defaults(handler=cmd_set_image)

    p = sub.add_parser("delete", help="Delete a deployment")
    p.add_argument("namespace")
    p.add_argument("name")
    p.set_defaults(handler=cmd_delete)

    p = sub.add_parser("expose", help="Create a service")
    p.add_argument("name", nargs="?", default=demo.service_name)
    p.add_argument("-n", "--namespace", default=demo.namespace)
    p.add_argument(
        "--selector", type=label, action="append", help="Selector key=value (repeatable)"
    )
    p.add_argument(
        "--label", type=label, action="append", help="Label key=value (repeatable)"
    )
    p.add_argument(
        "--type",
        default=demo.service_type,
        choices=[t.value for t in ServiceType if t != ServiceType.EXTERNAL_NAME],
    )
    p.add_argument("--port", type=int, default=demo.service_port)
    p.add_argument("--port-name", default=demo.port_name)
    p.add_argument("--target-port", type=int)
    p.add_argument(
        "--node-port",
        type=int,
        help=f"Node port (default: {demo.node_port} for NodePort; 0 lets the cluster pick)",
    )
    p.set_defaults(handler=cmd_expose)

    p = sub.add_parser("services", help="List services")
    _add_namespace_scope(p, demo)
    p.set_defaults(handler=cmd_services)

    p = sub.add_parser("demo", help="Create, scale, update, and expose the demo deployment")
    p.set_defaults(handler=cmd_demo)

    sub.add_parser("serve", help="Run the HTTP API")

    return parser


def apply_overrides(settings: Settings, args) -> Settings:
    """Return settings with command-line flags applied."""
    updates = {}
    if args.kubeconfig:
        updates["kubeconfig_path"] = args.kubeconfig
    if args.context:
        updates["context"] = args.context
    if args.timeout:
        updates["request_timeout"] = args.timeout
    top = {}
    if args.log_level:
        top["log_level"] = args.log_level.upper()
    if updates:
        top["kubernetes"] = settings.kubernetes.model_copy(update=updates)
    if not top:
        return settings
    return settings.model_copy(update=top)


def serve(settings: Settings) -> int:
    """Run the HTTP API with these settings, command-line overrides included."""
    import uvicorn

    from .main import create_app

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    base_settings = get_settings()
    parser = build_parser(base_settings.demo)
    args = parser.parse_args(argv)
    settings = apply_overrides(base_settings, args)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.command == "serve":
        return serve(settings)

    try:
        with ClusterClient.connect(settings.kubernetes) as cluster:
            args.handler(cluster, args, settings)
    except ClusterError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    except ValidationError as e:
        logger.error(f"{args.command} failed: invalid resource spec: {e}")
        return 1
    except ValueError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
