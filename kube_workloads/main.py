"""
Kubernetes Workload Management API

HTTP entry point. Serves the namespace, deployment, and service operations
over one shared cluster client.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from . import __version__
from .api import api_router
from .config import Settings, get_settings
from .exceptions import (
    AlreadyExistsError,
    APIError,
    ClusterConnectionError,
    ConflictError,
    ContainerIndexError,
    NotFoundError,
)
from .telemetry import setup_telemetry

logger = logging.getLogger(__name__)

# Most specific first; the first matching type decides the status code.
ERROR_STATUS = (
    (NotFoundError, 404),
    (AlreadyExistsError, 409),
    (ConflictError, 409),
    (ContainerIndexError, 422),
    (ClusterConnectionError, 503),
    (APIError, 502),
    (ValueError, 422),
)


def error_status(exc: Exception) -> int:
    """HTTP status code for a service exception."""
    for error_cls, status_code in ERROR_STATUS:
        if isinstance(exc, error_cls):
            return status_code
    return 500


async def cluster_error_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code = error_status(exc)
    logger.warning(f"{request.method} {request.url.path} failed ({status_code}): {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = app.state.settings

    if settings.telemetry.enabled:
        setup_telemetry(settings, app)
        logger.info("OpenTelemetry tracing enabled")

    logger.info(f"Starting workload management API for {settings.cluster_name}")

    yield

    cluster = getattr(app.state, "cluster", None)
    if cluster is not None:
        cluster.close()
    logger.info("Shutting down workload management API")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    ``settings`` replaces the environment-derived settings for every route,
    so connection overrides given on the command line reach the API.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Kubernetes Workload Management API",
        description="Lifecycle operations for deployments and services",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.cluster = None
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for error_cls, _ in ERROR_STATUS:
        app.add_exception_handler(error_cls, cluster_error_handler)

    app.include_router(api_router, prefix="/api")

    # Mount Prometheus metrics endpoint
    app.mount("/metrics", make_asgi_app())

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    settings = get_settings()
    uvicorn.run(
        "kube_workloads.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
