"""Centralized webhook settings using pydantic-settings.

This module provides a single source of truth for all webhook configuration
loaded from environment variables. Uses pydantic for automatic validation,
type coercion, and documentation.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from admission_webhook.constants import (
    DEFAULT_BASE_PATH,
    DEFAULT_CERT_DIR,
    DEFAULT_MAX_REQUEST_BYTES,
)


class Settings(BaseSettings):
    """Webhook configuration loaded from environment variables.

    All settings have sensible defaults for an in-cluster deployment. Override
    via environment variables as documented per field.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Admission endpoint
    base_path: str = Field(
        default=DEFAULT_BASE_PATH,
        validation_alias="BASE_PATH",
        description="URL path the admission endpoint is served on",
    )
    webhook_host: str = Field(
        default="0.0.0.0",
        validation_alias="WEBHOOK_HOST",
        description="Host address to bind the admission webhook server",
    )
    webhook_port: int = Field(
        default=8443,
        validation_alias="WEBHOOK_PORT",
        description="Port for the admission webhook server",
    )
    max_request_bytes: int = Field(
        default=DEFAULT_MAX_REQUEST_BYTES,
        gt=0,
        validation_alias="MAX_REQUEST_BYTES",
        description="Largest AdmissionReview body accepted, in bytes",
    )

    # TLS
    tls_enabled: bool = Field(
        default=True,
        validation_alias="TLS_ENABLED",
        description="Serve the webhook over HTTPS (required by the API server)",
    )
    tls_cert_file: str = Field(
        default=f"{DEFAULT_CERT_DIR}/tls.crt",
        validation_alias="TLS_CERT_FILE",
        description="Path to the serving certificate chain",
    )
    tls_key_file: str = Field(
        default=f"{DEFAULT_CERT_DIR}/tls.key",
        validation_alias="TLS_KEY_FILE",
        description="Path to the serving certificate private key",
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=True,
        validation_alias="JSON_LOGS",
        description="Enable JSON formatted logging for structured log aggregation",
    )
    correlation_ids: bool = Field(
        default=True,
        validation_alias="CORRELATION_IDS",
        description="Enable correlation IDs in logs for request tracing",
    )
    log_health_probes: bool = Field(
        default=False,
        validation_alias="LOG_HEALTH_PROBES",
        description="Log liveness probe and metrics scrape requests",
    )

    # Metrics and observability
    metrics_enabled: bool = Field(
        default=True,
        validation_alias="METRICS_ENABLED",
        description="Serve Prometheus metrics on a separate port",
    )
    metrics_port: int = Field(
        default=8081,
        validation_alias="METRICS_PORT",
        description="Port for Prometheus metrics endpoint",
    )
    metrics_host: str = Field(
        default="0.0.0.0",
        validation_alias="METRICS_HOST",
        description="Host address to bind metrics server",
    )

    # Bundled mutations
    pod_nodes_selector_config: str = Field(
        default="",
        validation_alias="POD_NODES_SELECTOR_CONFIG",
        description=(
            "Per-namespace node selectors for pods, formatted as "
            "'<namespace>:<label>=<value>[,...][;<namespace>:...]' "
            "(empty = disabled)"
        ),
    )

    @field_validator("base_path")
    @classmethod
    def _normalize_base_path(cls, value: str) -> str:
        """Ensure the base path is absolute ("mutate" -> "/mutate")."""
        value = value.strip()
        if not value:
            return DEFAULT_BASE_PATH
        if not value.startswith("/"):
            value = f"/{value}"
        return value


# Global settings instance - initialized once at module import
settings = Settings()
