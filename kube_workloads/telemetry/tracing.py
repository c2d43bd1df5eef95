"""Tracing utilities and decorators."""

import functools
from typing import Any, Callable, Optional

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from prometheus_client import Counter

# Global tracer instance
_tracer: Optional[trace.Tracer] = None

OPERATIONS = Counter(
    "kube_workloads_operations",
    "Control-plane operations by outcome",
    ["operation", "outcome"],
)


def get_tracer(name: str = "kube-workloads") -> trace.Tracer:
    """Get or create a tracer instance."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(name)
    return _tracer


def bind_tracer(provider: trace.TracerProvider, name: str = "kube-workloads") -> None:
    """Send subsequent operation spans to ``provider``."""
    global _tracer
    _tracer = provider.get_tracer(name)


def traced(
    name: Optional[str] = None,
    attributes: Optional[dict[str, Any]] = None,
) -> Callable:
    """
    Decorator to trace a function execution.

    Each call runs in its own span and increments ``OPERATIONS`` with
    outcome ``success`` or ``error``. Exceptions are recorded and re-raised.

    Args:
        name: Span name (defaults to function name)
        attributes: Additional span attributes

    Example:
        @traced("list_namespaces")
        def list_namespaces(self):
            ...
    """

    def decorator(func: Callable) -> Callable:
        span_name = name or func.__name__

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            tracer = get_tracer()
            with tracer.start_as_current_span(span_name) as span:
                if attributes:
                    for key, value in attributes.items():
                        span.set_attribute(key, value)

                span.set_attribute("function.name", func.__name__)
                span.set_attribute("function.module", func.__module__)

                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    OPERATIONS.labels(operation=span_name, outcome="error").inc()
                    raise
                span.set_status(Status(StatusCode.OK))
                OPERATIONS.labels(operation=span_name, outcome="success").inc()
                return result

        return wrapper

    return decorator
