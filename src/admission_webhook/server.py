#!/usr/bin/env python3
"""
Admission Webhook Server - main entry point.

Serves the mutating admission endpoint over HTTPS and Prometheus metrics over
plain HTTP. The set of decision functions is built once from configuration at
startup and never changes while the process runs.

Usage:
    python -m admission_webhook.server
    # Or via the console script:
    admission-webhook

Environment Variables:
    BASE_PATH: Path of the admission endpoint (default: /mutate)
    WEBHOOK_PORT: HTTPS port of the admission endpoint (default: 8443)
    TLS_CERT_FILE / TLS_KEY_FILE: Serving certificate and key
    POD_NODES_SELECTOR_CONFIG: Enables the pod node selector mutation
    LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
"""

import asyncio
import logging
import ssl
import sys

from aiohttp import web

from admission_webhook.admission import (
    AdmissionController,
    DecisionRegistry,
    create_webhook_app,
)
from admission_webhook.errors import ConfigurationError
from admission_webhook.mutations import PodNodeSelector
from admission_webhook.observability.logging import setup_structured_logging
from admission_webhook.observability.metrics import MetricsServer
from admission_webhook.settings import Settings
from admission_webhook.settings import settings as webhook_settings


def configure_logging(app_settings: Settings = webhook_settings) -> None:
    """Configure structured logging for the webhook based on settings."""
    setup_structured_logging(
        log_level=app_settings.log_level.upper(),
        enable_json_formatting=app_settings.json_logs,
        correlation_id_enabled=app_settings.correlation_ids,
        log_health_probes=app_settings.log_health_probes,
    )


def build_registry(app_settings: Settings) -> DecisionRegistry:
    """
    Register the decision functions enabled by configuration.

    Args:
        app_settings: Webhook settings

    Returns:
        Registry holding the enabled decision functions, in execution order

    Raises:
        ConfigurationError: If a mutation's configuration is malformed
    """
    registry = DecisionRegistry()

    if app_settings.pod_nodes_selector_config:
        mutation = PodNodeSelector.from_string(app_settings.pod_nodes_selector_config)
        registry.add(mutation.name, mutation)

    if not len(registry):
        logging.warning(
            "No decision functions enabled; every request outside protected "
            "namespaces will be allowed unchanged"
        )

    return registry


def create_ssl_context(cert_file: str, key_file: str) -> ssl.SSLContext:
    """
    Create the server-side TLS context for the admission endpoint.

    Raises:
        ConfigurationError: If the certificate or key cannot be loaded
    """
    context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    try:
        context.load_cert_chain(certfile=cert_file, keyfile=key_file)
    except (OSError, ssl.SSLError) as e:
        raise ConfigurationError(
            f"could not load TLS certificate {cert_file}: {e}",
            user_action="Mount the serving certificate secret or set TLS_CERT_FILE/TLS_KEY_FILE",
        ) from e
    return context


async def serve(app_settings: Settings = webhook_settings) -> None:
    """Run the webhook and metrics servers until cancelled."""
    controller = AdmissionController(build_registry(app_settings).freeze())
    app = create_webhook_app(
        controller, app_settings.base_path, app_settings.max_request_bytes
    )

    ssl_context = None
    if app_settings.tls_enabled:
        ssl_context = create_ssl_context(
            app_settings.tls_cert_file, app_settings.tls_key_file
        )
    else:
        logging.warning("TLS is disabled; the API server only calls HTTPS webhooks")

    metrics_server = None
    if app_settings.metrics_enabled:
        metrics_server = MetricsServer(
            port=app_settings.metrics_port, host=app_settings.metrics_host
        )
        await metrics_server.start()

    runner = web.AppRunner(app)
    await runner.setup()
    try:
        site = web.TCPSite(
            runner,
            app_settings.webhook_host,
            app_settings.webhook_port,
            ssl_context=ssl_context,
        )
        await site.start()
        scheme = "https" if ssl_context else "http"
        logging.info(
            f"Admission webhook listening on {scheme}://{app_settings.webhook_host}:"
            f"{app_settings.webhook_port}{app_settings.base_path}"
        )
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()
        if metrics_server:
            await metrics_server.stop()


def main() -> None:
    """
    Main entry point for the webhook server.

    This function:
    1. Configures logging
    2. Builds the decision functions from configuration
    3. Serves the admission endpoint until interrupted
    """
    configure_logging()

    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        logging.info("Received shutdown signal")
        sys.exit(0)
    except Exception as e:
        logging.error(f"Webhook server failed with error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
