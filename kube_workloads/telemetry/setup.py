"""OpenTelemetry setup for control-plane operation spans."""

import logging
from typing import Optional

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter

from .. import __version__
from ..config import Settings
from .tracing import bind_tracer

logger = logging.getLogger(__name__)


def build_resource(settings: Settings) -> Resource:
    """Resource attributes identifying this client and the cluster it targets."""
    k8s = settings.kubernetes
    attributes = {
        "service.name": settings.telemetry.service_name,
        "service.version": __version__,
        "k8s.cluster.name": settings.cluster_name,
        "kube_workloads.in_cluster": k8s.in_cluster,
        "kube_workloads.request_timeout": k8s.request_timeout,
        "kube_workloads.page_size": k8s.page_size,
    }
    if k8s.context:
        attributes["kube_workloads.context"] = k8s.context
    return Resource.create(attributes)


def setup_telemetry(
    settings: Settings,
    app: Optional[FastAPI] = None,
    exporter: Optional[SpanExporter] = None,
) -> Optional[TracerProvider]:
    """
    Route operation spans to a tracer provider.

    Every ``traced`` service call (``list_namespaces``, ``create_deployment``,
    ``scale_deployment`` and so on) is exported through ``exporter``, which
    defaults to OTLP at ``settings.telemetry.exporter_endpoint`` in batches.
    HTTP requests to ``app`` get server spans as well.

    Returns the provider, or None when telemetry is disabled.
    """
    if not settings.telemetry.enabled:
        logger.info("OpenTelemetry disabled")
        return None

    provider = TracerProvider(resource=build_resource(settings))

    if exporter is None:
        try:
            exporter = OTLPSpanExporter(
                endpoint=settings.telemetry.exporter_endpoint,
                insecure=True,
            )
        except Exception as e:
            logger.warning(f"Failed to configure OTLP exporter, spans stay local: {e}")

    if exporter is not None:
        provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(provider)
    bind_tracer(provider)

    if app is not None:
        FastAPIInstrumentor.instrument_app(app, tracer_provider=provider)

    logger.info(
        f"OpenTelemetry configured for {settings.cluster_name}: "
        f"exporting with {type(exporter).__name__}"
    )
    return provider
