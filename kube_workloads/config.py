"""
Configuration management using Pydantic Settings.

Environment variables can override all settings.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class KubernetesSettings(BaseSettings):
    """Kubernetes connection settings."""

    model_config = SettingsConfigDict(env_prefix="K8S_")

    kubeconfig_path: Optional[str] = Field(
        default=None,
        description="Path to kubeconfig file. If None, candidates are auto-discovered.",
    )
    context: Optional[str] = Field(
        default=None,
        description="Kubernetes context to use. If None, uses current context.",
    )
    in_cluster: bool = Field(
        default=False,
        description="Only use the in-cluster service account config.",
    )
    auto_discover: bool = Field(
        default=True,
        description="Auto-discover kubeconfig files (env KUBECONFIG, default kubeconfig).",
    )
    extra_kubeconfig_paths: list[str] = Field(
        default=[],
        description="Additional kubeconfig paths to try during auto-discovery.",
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Client-side timeout for every control-plane request (seconds)",
    )
    page_size: int = Field(
        default=500,
        ge=1,
        description="Page size for list requests",
    )
    delete_propagation: str = Field(
        default="Background",
        description="Propagation policy for deletes (Foreground, Background, Orphan)",
    )


class DemoSettings(BaseSettings):
    """Example resources created by the demo commands."""

    model_config = SettingsConfigDict(env_prefix="DEMO_")

    namespace: str = Field(default="web", description="Namespace for demo resources")
    deployment_name: str = Field(default="test-golang", description="Demo deployment name")
    app_label: str = Field(default="test-golang", description="Value of the app label")
    replicas: int = Field(default=2, ge=0, description="Initial replica count")
    container_name: str = Field(default="test", description="Container name")
    image: str = Field(default="nginx:1.16.1", description="Initial container image")
    updated_image: str = Field(default="nginx:1.18.0", description="Image used by the update step")
    pull_policy: str = Field(default="IfNotPresent", description="Image pull policy")
    port_name: str = Field(default="http", description="Container and service port name")
    container_port: int = Field(default=80, description="Container port")
    service_name: str = Field(default="go-nginx-svc", description="Demo service name")
    service_label: str = Field(default="go-nginx", description="Value of the svc label")
    service_type: str = Field(default="NodePort", description="Demo service type")
    service_port: int = Field(default=80, description="Service port")
    node_port: int = Field(default=6110, description="Node port for the demo service")


class TelemetrySettings(BaseSettings):
    """OpenTelemetry settings."""

    model_config = SettingsConfigDict(env_prefix="OTEL_")

    enabled: bool = Field(default=False, description="Enable OpenTelemetry tracing")
    service_name: str = Field(default="kube-workloads", description="Service name for traces")
    exporter_endpoint: str = Field(
        default="http://otel-collector.observability:4317",
        description="OTLP exporter endpoint",
    )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Application settings
    debug: bool = Field(default=False, description="Enable debug mode")
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )

    # Cluster information
    cluster_name: str = Field(default="kubernetes", description="Cluster name")

    # Nested settings
    kubernetes: KubernetesSettings = Field(default_factory=KubernetesSettings)
    demo: DemoSettings = Field(default_factory=DemoSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
