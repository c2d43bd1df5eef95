"""OpenTelemetry instrumentation and Prometheus counters."""

from .setup import setup_telemetry
from .tracing import OPERATIONS, bind_tracer, get_tracer, traced

__all__ = ["setup_telemetry", "traced", "get_tracer", "bind_tracer", "OPERATIONS"]
