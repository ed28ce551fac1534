"""
Prometheus metrics for the admission webhook.

This module provides metrics for admission outcomes, decision function
failures and HTTP-level rejections, plus a small HTTP server exposing them.
"""

import logging
from typing import Literal

from aiohttp.web import (
    Application,
    AppRunner,
    Request,
    Response,
    TCPSite,
)
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

AdmissionResult = Literal["allowed", "denied", "exempt"]

# Global metrics registry
_metrics_registry: CollectorRegistry | None = None

# Metrics definitions
ADMISSION_REQUESTS_TOTAL = Counter(
    "admission_webhook_requests_total",
    "Total number of admission requests answered with a review",
    ["result"],
    registry=None,  # Registered in get_metrics_registry()
)

ADMISSION_REQUEST_DURATION = Histogram(
    "admission_webhook_request_duration_seconds",
    "Time spent decoding, deciding and encoding admission requests",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
    registry=None,
)

DECISION_FAILURES_TOTAL = Counter(
    "admission_webhook_decision_failures_total",
    "Total number of requests denied by a decision function",
    ["decision", "error_type"],
    registry=None,
)

PATCH_OPERATIONS_TOTAL = Counter(
    "admission_webhook_patch_operations_total",
    "Total number of JSON patch operations returned to the API server",
    registry=None,
)

HTTP_ERRORS_TOTAL = Counter(
    "admission_webhook_http_errors_total",
    "Total number of webhook calls answered with an HTTP error status",
    ["status"],
    registry=None,
)


def get_metrics_registry() -> CollectorRegistry:
    """Get or create the global metrics registry."""
    global _metrics_registry

    if _metrics_registry is None:
        _metrics_registry = CollectorRegistry()

        for metric in [
            ADMISSION_REQUESTS_TOTAL,
            ADMISSION_REQUEST_DURATION,
            DECISION_FAILURES_TOTAL,
            PATCH_OPERATIONS_TOTAL,
            HTTP_ERRORS_TOTAL,
        ]:
            _metrics_registry.register(metric)

    return _metrics_registry


def record_admission(result: AdmissionResult, patch_operations: int = 0) -> None:
    """
    Record the outcome of an admission request.

    Args:
        result: allowed, denied, or exempt (protected namespace)
        patch_operations: Number of patch operations returned
    """
    ADMISSION_REQUESTS_TOTAL.labels(result=result).inc()
    if patch_operations:
        PATCH_OPERATIONS_TOTAL.inc(patch_operations)


def record_decision_failure(decision: str, error: Exception) -> None:
    """Record a decision function denying a request."""
    DECISION_FAILURES_TOTAL.labels(
        decision=decision, error_type=type(error).__name__
    ).inc()


def record_request_duration(duration: float) -> None:
    """Record the end-to-end processing time of a review."""
    ADMISSION_REQUEST_DURATION.observe(duration)


def record_http_error(status: int) -> None:
    """Record a webhook call answered with an HTTP error status."""
    HTTP_ERRORS_TOTAL.labels(status=str(status)).inc()


class MetricsServer:
    """HTTP server for exposing Prometheus metrics."""

    def __init__(self, port: int = 8081, host: str = "0.0.0.0"):
        """
        Initialize metrics server.

        Args:
            port: Port to serve metrics on
            host: Host interface to bind to
        """
        self.port = port
        self.host = host
        self.app = Application()
        self.runner: AppRunner | None = None
        self.site: TCPSite | None = None
        self._setup_routes()

    def _setup_routes(self) -> None:
        """Set up HTTP routes for the metrics server."""
        self.app.router.add_get("/metrics", self._metrics_handler)
        self.app.router.add_get("/healthz", self._healthz_handler)

    async def _metrics_handler(self, request: Request) -> Response:
        """Handle /metrics endpoint for Prometheus scraping."""
        try:
            registry = get_metrics_registry()
            metrics_data = generate_latest(registry)
            # CONTENT_TYPE_LATEST carries parameters aiohttp refuses in content_type
            return Response(body=metrics_data, headers={"Content-Type": CONTENT_TYPE_LATEST})
        except Exception as e:
            logger.error(f"Failed to generate metrics: {e}")
            return Response(
                text=f"Error generating metrics: {type(e).__name__}. Check logs for details.",
                status=500,
            )

    async def _healthz_handler(self, request: Request) -> Response:
        """Handle /healthz endpoint for Kubernetes liveness probes."""
        return Response(text="ok")

    async def start(self) -> None:
        """Start the metrics server."""
        try:
            self.runner = AppRunner(self.app)
            await self.runner.setup()

            self.site = TCPSite(self.runner, self.host, self.port)
            await self.site.start()

            logger.info(f"Metrics server started on {self.host}:{self.port}")
            logger.info(f"Metrics available at http://{self.host}:{self.port}/metrics")

        except Exception as e:
            logger.error(f"Failed to start metrics server: {e}")
            raise

    async def stop(self) -> None:
        """Stop the metrics server."""
        try:
            if self.site:
                await self.site.stop()
                self.site = None

            if self.runner:
                await self.runner.cleanup()
                self.runner = None

            logger.info("Metrics server stopped")
        except Exception as e:
            logger.error(f"Error stopping metrics server: {e}")
